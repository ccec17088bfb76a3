"""Tezos ed25519 (tz1) signature verification.

A tz1 address is a hash of the public key, so the key cannot be recovered
from the address. The caller supplies a PublicKeyResolver (for example a
lookup of the key the wallet reported at connect time, or an RPC call to the
chain's ``manager_key`` endpoint).

Wallets sign the message as a Micheline-packed string:

    0x05 0x01 <4-byte big-endian length> <UTF-8 text>

and the ed25519 signature covers the blake2b-256 digest of that payload.
"""

import hashlib
from typing import Protocol

import base58
import structlog
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from siwx.exceptions import MalformedSignature
from siwx.models.signature import SignatureKind, SignedMessage
from siwx.services.verification.registry import ensure_kind

logger = structlog.get_logger()

# base58check prefixes
TZ1_PREFIX = bytes([6, 161, 159])
EDPK_PREFIX = bytes([13, 15, 37, 217])
EDSIG_PREFIX = bytes([9, 245, 205, 134, 18])

SIGNATURE_LENGTH = 64
PUBLIC_KEY_LENGTH = 32
MICHELINE_PACK_TAG = b"\x05"
MICHELINE_STRING_TAG = b"\x01"


class PublicKeyResolver(Protocol):
    """Return the public key (32 raw bytes or ``edpk...``) for an address, or None."""

    def __call__(self, address: str) -> bytes | str | None: ...


def micheline_payload(text: str) -> bytes:
    data = text.encode("utf-8")
    return MICHELINE_PACK_TAG + MICHELINE_STRING_TAG + len(data).to_bytes(4, "big") + data


def tz1_address(public_key: bytes) -> str:
    """Derive the tz1 address of a raw ed25519 public key."""
    digest = hashlib.blake2b(public_key, digest_size=20).digest()
    return base58.b58encode_check(TZ1_PREFIX + digest).decode("ascii")


def decode_public_key(value: bytes | str) -> bytes:
    """Decode an ``edpk...`` string or raw 32-byte key.

    Raises:
        ValueError: If the value is not an ed25519 public key
    """
    if isinstance(value, str):
        decoded = base58.b58decode_check(value)
        if not decoded.startswith(EDPK_PREFIX):
            raise ValueError("public key is not an edpk key")
        value = decoded[len(EDPK_PREFIX) :]
    if len(value) != PUBLIC_KEY_LENGTH:
        raise ValueError(f"expected {PUBLIC_KEY_LENGTH}-byte public key, got {len(value)}")
    return bytes(value)


def decode_signature(raw: bytes) -> bytes:
    """Accept raw 64-byte signatures or UTF-8 bytes of an ``edsig...`` string.

    Raises:
        MalformedSignature: If neither form matches
    """
    if len(raw) == SIGNATURE_LENGTH:
        return raw
    if raw.startswith(b"edsig"):
        try:
            decoded = base58.b58decode_check(raw.decode("ascii"))
        except ValueError as e:
            raise MalformedSignature(SignatureKind.TEZOS_ED25519.value, f"bad edsig: {e}") from e
        if decoded.startswith(EDSIG_PREFIX) and len(decoded) == len(EDSIG_PREFIX) + 64:
            return decoded[len(EDSIG_PREFIX) :]
    raise MalformedSignature(
        SignatureKind.TEZOS_ED25519.value,
        f"expected {SIGNATURE_LENGTH} raw bytes or an edsig string, got {len(raw)} bytes",
    )


class TezosEd25519Verifier:
    """Verify tz1 signatures with a caller-supplied public key resolver."""

    kind = SignatureKind.TEZOS_ED25519.value

    def __init__(self, resolve_public_key: PublicKeyResolver):
        self.resolve_public_key = resolve_public_key

    def verify(self, signed: SignedMessage) -> bool:
        """Verify the signature with the resolved key of the message address.

        Returns False when no key is known for the address, when the key does
        not hash to the address, or when the signature does not match.

        Raises:
            UnsupportedSignatureKind: If the signature is not tezos-ed25519
            MalformedSignature: If the signature bytes cannot be decoded
        """
        ensure_kind(self, signed)
        address = signed.message.address
        signature = decode_signature(signed.signature.raw)

        resolved = self.resolve_public_key(address)
        if resolved is None:
            logger.warning("tezos_public_key_unknown", wallet_address=address)
            return False
        try:
            public_key = decode_public_key(resolved)
        except ValueError as e:
            logger.warning("tezos_public_key_invalid", wallet_address=address, error=str(e))
            return False

        if tz1_address(public_key) != address:
            logger.warning(
                "tezos_public_key_address_mismatch",
                wallet_address=address,
                derived_address=tz1_address(public_key),
            )
            return False

        digest = hashlib.blake2b(micheline_payload(signed.message.to_string()), digest_size=32)
        try:
            VerifyKey(public_key).verify(digest.digest(), signature)
        except BadSignatureError:
            logger.warning("tezos_signature_verification_failed", wallet_address=address)
            return False

        logger.info("tezos_signature_verification_success", wallet_address=address)
        return True
