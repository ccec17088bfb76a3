"""SIWx value types.

Messages, signatures and account identifiers are immutable once built.
"""

from siwx.models.account import AccountId, AccountIdLike, ChainId, network_for_namespace
from siwx.models.message import BuildFields, MessageParseResult, SiwxMessage, generate_nonce
from siwx.models.payload import SignedMessagePayload
from siwx.models.signature import Signature, SignatureKind, SignedMessage

__all__ = [
    "AccountId",
    "AccountIdLike",
    "ChainId",
    "network_for_namespace",
    "BuildFields",
    "MessageParseResult",
    "SiwxMessage",
    "generate_nonce",
    "SignedMessagePayload",
    "Signature",
    "SignatureKind",
    "SignedMessage",
]
