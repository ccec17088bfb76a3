"""Signature and SignedMessage value types."""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import base58

if TYPE_CHECKING:
    from siwx.models.message import SiwxMessage


class SignatureKind(str, Enum):
    """Signature kinds with a verifier shipped in this package.

    Signature.kind is a plain string, so other kinds can be registered.
    """

    EIP191 = "eip191"
    EIP1271 = "eip1271"
    SOLANA_ED25519 = "solana-ed25519"
    TEZOS_ED25519 = "tezos-ed25519"


@dataclass(frozen=True)
class Signature:
    """Signature bytes tagged with the scheme that produced them.

    Length is not checked here; each verifier checks it for its kind.
    """

    kind: str
    raw: bytes

    def __post_init__(self) -> None:
        if isinstance(self.kind, SignatureKind):
            object.__setattr__(self, "kind", self.kind.value)
        object.__setattr__(self, "raw", bytes(self.raw))

    @classmethod
    def from_hex(cls, kind: str, value: str) -> "Signature":
        """Build a signature from a hex string (``0x`` prefix optional).

        Raises:
            ValueError: If value is not valid hex
        """
        return cls(kind=kind, raw=bytes.fromhex(value.removeprefix("0x")))

    @classmethod
    def from_base58(cls, kind: str, value: str) -> "Signature":
        return cls(kind=kind, raw=base58.b58decode(value))

    def to_hex(self) -> str:
        return "0x" + self.raw.hex()

    def to_base58(self) -> str:
        return base58.b58encode(self.raw).decode("ascii")

    def __str__(self) -> str:
        return f"{self.kind}:{self.to_hex()}"


@dataclass(frozen=True)
class SignedMessage:
    """A message paired with the signature over its canonical text."""

    message: "SiwxMessage"
    signature: Signature
