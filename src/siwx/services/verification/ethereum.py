"""EIP-191 signature verification for externally owned Ethereum accounts.

The signed digest is keccak256("\\x19Ethereum Signed Message:\\n" + len + text)
where len is the decimal UTF-8 byte length of the canonical message text.
The signer's address is recovered from the 65-byte (r, s, v) signature and
compared case-insensitively to the message address.
"""

import structlog
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys.exceptions import BadSignature
from eth_keys.exceptions import ValidationError as EthKeysValidationError

from siwx.exceptions import MalformedSignature
from siwx.models.signature import SignatureKind, SignedMessage
from siwx.services.verification.registry import ensure_kind

logger = structlog.get_logger()

SIGNATURE_LENGTH = 65
# Recovery id as the last byte: 27/28 from personal_sign, 0/1 from some signers
VALID_RECOVERY_BYTES = (0, 1, 27, 28)


class Eip191Verifier:
    """Verify personal_sign (EIP-191 version 0x45) signatures."""

    kind = SignatureKind.EIP191.value

    def verify(self, signed: SignedMessage) -> bool:
        """Verify that the message address produced the signature.

        Returns:
            True if the recovered address equals the message address
            (case-insensitive), False otherwise.

        Raises:
            UnsupportedSignatureKind: If the signature is not eip191
            MalformedSignature: If the signature is not 65 bytes or its
                recovery byte is invalid
        """
        ensure_kind(self, signed)
        signature = signed.signature.raw
        claimed_address = signed.message.address

        if len(signature) != SIGNATURE_LENGTH:
            logger.error(
                "eip191_signature_malformed",
                wallet_address=claimed_address,
                signature_length=len(signature),
            )
            raise MalformedSignature(
                self.kind, f"expected {SIGNATURE_LENGTH} bytes, got {len(signature)}"
            )
        if signature[-1] not in VALID_RECOVERY_BYTES:
            raise MalformedSignature(self.kind, f"invalid recovery byte {signature[-1]}")

        text = signed.message.to_string()
        logger.debug(
            "eip191_signature_verification_attempt",
            wallet_address=claimed_address,
            message_preview=text[:50],
            signature_prefix=signed.signature.to_hex()[:10],
        )

        try:
            recovered_address = Account.recover_message(
                encode_defunct(text=text), signature=signature
            )
        except (BadSignature, EthKeysValidationError, ValueError) as e:
            # r or s outside the curve order: well-formed bytes, not a valid signature
            logger.warning(
                "eip191_signature_verification_failed",
                wallet_address=claimed_address,
                reason="recovery_failed",
                error=str(e),
            )
            return False

        is_valid = recovered_address.lower() == claimed_address.lower()
        if is_valid:
            logger.info(
                "eip191_signature_verification_success",
                wallet_address=claimed_address,
                recovered_address=recovered_address,
            )
        else:
            logger.warning(
                "eip191_signature_verification_failed",
                wallet_address=claimed_address,
                recovered_address=recovered_address,
                reason="address_mismatch",
            )
        return is_valid
