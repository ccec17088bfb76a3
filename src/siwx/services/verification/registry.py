"""Signature verifier registry and dispatch.

Verifiers are looked up by Signature.kind. Registries are immutable:
``register`` returns a new registry, so a registry can be shared between
threads without locking.
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Protocol, runtime_checkable

import structlog

from siwx.exceptions import UnsupportedSignatureKind
from siwx.models.signature import SignedMessage

logger = structlog.get_logger()


@runtime_checkable
class SignatureVerifier(Protocol):
    """Capability that checks one kind of signature.

    ``verify`` returns False for a well-formed signature that does not match,
    and raises a VerificationError when the signature cannot be evaluated.
    """

    kind: str

    def verify(self, signed: SignedMessage) -> bool: ...


class VerifierRegistry:
    """Immutable mapping from signature kind to verifier."""

    def __init__(self, verifiers: Iterable[SignatureVerifier] = ()):
        self._verifiers: Mapping[str, SignatureVerifier] = MappingProxyType(
            {verifier.kind: verifier for verifier in verifiers}
        )

    @property
    def kinds(self) -> frozenset[str]:
        return frozenset(self._verifiers)

    def register(self, verifier: SignatureVerifier) -> "VerifierRegistry":
        """Return a new registry with verifier added (replacing its kind)."""
        return VerifierRegistry([*self._verifiers.values(), verifier])

    def get(self, kind: str) -> SignatureVerifier:
        """Return the verifier for kind.

        Raises:
            UnsupportedSignatureKind: If no verifier is registered for kind
        """
        try:
            return self._verifiers[kind]
        except KeyError:
            raise UnsupportedSignatureKind(kind) from None

    def verify(self, signed: SignedMessage) -> bool:
        """Verify a signed message with the verifier for its signature kind.

        Raises:
            UnsupportedSignatureKind: If no verifier handles the kind
            MalformedSignature: If the signature cannot be evaluated
        """
        kind = signed.signature.kind
        if kind not in self._verifiers:
            logger.warning("signature_kind_unsupported", kind=kind, registered=sorted(self.kinds))
        return self.get(kind).verify(signed)

    def __contains__(self, kind: object) -> bool:
        return kind in self._verifiers

    def __repr__(self) -> str:
        return f"VerifierRegistry(kinds={sorted(self.kinds)})"


def ensure_kind(verifier: SignatureVerifier, signed: SignedMessage) -> None:
    """Reject signatures of another kind than the verifier handles.

    Raises:
        UnsupportedSignatureKind: If the signature kind does not match
    """
    if signed.signature.kind != verifier.kind:
        logger.warning(
            "signature_kind_mismatch",
            verifier_kind=verifier.kind,
            signature_kind=signed.signature.kind,
        )
        raise UnsupportedSignatureKind(signed.signature.kind)
