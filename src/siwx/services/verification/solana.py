"""Solana ed25519 signature verification.

Solana wallets sign the UTF-8 message bytes directly (no prefix, no hash).
The account address is the base58-encoded 32-byte ed25519 public key.
"""

import base58
import structlog
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from siwx.exceptions import MalformedSignature
from siwx.models.signature import SignatureKind, SignedMessage
from siwx.services.verification.registry import ensure_kind

logger = structlog.get_logger()

SIGNATURE_LENGTH = 64
PUBLIC_KEY_LENGTH = 32


class SolanaEd25519Verifier:
    """Verify ed25519 signatures from Solana wallets."""

    kind = SignatureKind.SOLANA_ED25519.value

    def verify(self, signed: SignedMessage) -> bool:
        """Verify the signature against the public key in the message address.

        Returns:
            True if the signature is valid for the address, False otherwise
            (including when the address is not a base58 ed25519 public key).

        Raises:
            UnsupportedSignatureKind: If the signature is not solana-ed25519
            MalformedSignature: If the signature is not 64 bytes
        """
        ensure_kind(self, signed)
        address = signed.message.address
        signature = signed.signature.raw

        if len(signature) != SIGNATURE_LENGTH:
            raise MalformedSignature(
                self.kind, f"expected {SIGNATURE_LENGTH} bytes, got {len(signature)}"
            )

        try:
            public_key = base58.b58decode(address)
        except ValueError:
            logger.warning("solana_address_not_base58", wallet_address=address)
            return False
        if len(public_key) != PUBLIC_KEY_LENGTH:
            logger.warning(
                "solana_address_wrong_length",
                wallet_address=address,
                key_length=len(public_key),
            )
            return False

        try:
            VerifyKey(public_key).verify(signed.message.signing_input(), signature)
        except BadSignatureError:
            logger.warning("solana_signature_verification_failed", wallet_address=address)
            return False

        logger.info("solana_signature_verification_success", wallet_address=address)
        return True
