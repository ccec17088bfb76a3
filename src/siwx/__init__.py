"""Sign-In-With-X: chain-agnostic sign-in messages.

Build a message, sign its canonical text with a wallet, and verify the
signature later:

    >>> fields = {"domain": "example.com", "uri": "https://example.com"}
    >>> message = SiwxMessage.make(account_id, fields)
    >>> signed = await sign_message(message, signer)
    >>> verify(signed)
    True
"""

from siwx.exceptions import (
    ContractCallError,
    FieldError,
    MalformedSignature,
    ParseError,
    SiwxError,
    UnsupportedSignatureKind,
    VerificationError,
)
from siwx.models import (
    AccountId,
    ChainId,
    MessageParseResult,
    Signature,
    SignatureKind,
    SignedMessage,
    SignedMessagePayload,
    SiwxMessage,
)
from siwx.services.signing import Auth, Signer, request, sign_message
from siwx.services.verification import VerifierRegistry, default_registry, verify

__all__ = [
    "AccountId",
    "Auth",
    "ChainId",
    "ContractCallError",
    "FieldError",
    "MalformedSignature",
    "MessageParseResult",
    "ParseError",
    "Signature",
    "SignatureKind",
    "SignedMessage",
    "SignedMessagePayload",
    "Signer",
    "SiwxError",
    "SiwxMessage",
    "UnsupportedSignatureKind",
    "VerificationError",
    "VerifierRegistry",
    "default_registry",
    "request",
    "sign_message",
    "verify",
]
