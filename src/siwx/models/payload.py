"""JSON transport model for signed SIWx messages."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from siwx.models.message import SiwxMessage
from siwx.models.signature import Signature, SignedMessage


class SignedMessagePayload(BaseModel):
    """Signed message as exchanged over the wire.

    The message travels as its canonical text; the receiver re-parses it, so a
    payload can never carry fields that differ from what was signed.
    """

    model_config = ConfigDict(frozen=True)

    message: str = Field(
        ...,
        description="Canonical SIWx message text exactly as signed",
        min_length=1,
    )
    kind: str = Field(
        ...,
        description="Signature kind, e.g. eip191 or solana-ed25519",
        min_length=1,
    )
    signature: str = Field(
        ...,
        description="Signature bytes as a 0x-prefixed hex string",
    )

    @field_validator("signature")
    @classmethod
    def validate_signature(cls, v: str) -> str:
        """Validate and normalize the signature to lowercase 0x-prefixed hex."""
        body = v.removeprefix("0x")
        if not body:
            raise ValueError("Signature must not be empty")
        try:
            return "0x" + bytes.fromhex(body).hex()
        except ValueError as e:
            raise ValueError(f"Invalid signature hex format: {e}")

    @classmethod
    def from_signed_message(cls, signed: SignedMessage) -> "SignedMessagePayload":
        return cls(
            message=signed.message.to_string(),
            kind=signed.signature.kind,
            signature=signed.signature.to_hex(),
        )

    def to_signed_message(self) -> SignedMessage:
        """Rebuild the SignedMessage, parsing the message text.

        Raises:
            ParseError: If the message text is malformed
            FieldError: If a message field is invalid
        """
        return SignedMessage(
            message=SiwxMessage.from_string(self.message),
            signature=Signature.from_hex(self.kind, self.signature),
        )
