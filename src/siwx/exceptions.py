"""Error hierarchy for SIWx message handling and signature verification.

This module defines the exceptions raised by the package:
- FieldError: A message field does not satisfy its grammar
- ParseError: Canonical message text is structurally malformed
- VerificationError: Base for errors raised while verifying a signature

A cryptographically wrong but well-formed signature is never an error:
verifiers return False for it. Errors mean "cannot evaluate".
"""

from typing import Any


class SiwxError(Exception):
    """Base exception for all SIWx errors."""

    pass


class FieldError(SiwxError, ValueError):
    """A raw field value failed validation.

    Attributes:
        field: Name of the field (snake_case, e.g. "chain_id")
        raw_value: The value that was rejected
        reason: Human-readable reason for the rejection
    """

    def __init__(self, field: str, raw_value: Any, reason: str):
        self.field = field
        self.raw_value = raw_value
        self.reason = reason
        super().__init__(f"Invalid {field} {raw_value!r}: {reason}")


class ParseError(SiwxError, ValueError):
    """Message text does not follow the canonical SIWx layout.

    Attributes:
        offset: Character offset in the input where parsing failed
        line: 1-based line number of the offset
        column: 1-based column of the offset
        expected: Description of what the grammar expected
        found: Text found at the offset (or "end of input")
    """

    def __init__(self, offset: int, line: int, column: int, expected: str, found: str):
        self.offset = offset
        self.line = line
        self.column = column
        self.expected = expected
        self.found = found
        super().__init__(
            f"Parse error at line {line}, column {column} (offset {offset}): "
            f"expected {expected}, found {found}"
        )


class VerificationError(SiwxError):
    """Base exception for signature verification errors."""

    pass


class UnsupportedSignatureKind(VerificationError):
    """No verifier is registered for the signature kind.

    Also raised when a verifier receives a signature of another kind.
    """

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Unsupported signature kind: {kind!r}")


class MalformedSignature(VerificationError, ValueError):
    """Signature bytes cannot be evaluated (wrong length or encoding)."""

    def __init__(self, kind: str, reason: str):
        self.kind = kind
        self.reason = reason
        super().__init__(f"Malformed {kind} signature: {reason}")


class ContractCallError(VerificationError):
    """ERC-1271 on-chain signature check could not be performed.

    Examples:
    - Contract not deployed at the claimed address
    - RPC endpoint unreachable
    - isValidSignature call reverted
    """

    def __init__(self, address: str, reason: str):
        self.address = address
        self.reason = reason
        super().__init__(f"ERC-1271 check failed for {address}: {reason}")
