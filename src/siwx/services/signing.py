"""Signing workflow: turn a SIWx message into a SignedMessage.

Signing is done by an external, asynchronous collaborator (a wallet or
provider). This module defines the shape of that collaborator and the two
entry points that use it:

- ``sign_message(message, signer)`` signs an already built message
- ``request(auth, fields)`` fills network/address/chain_id from an Auth
  provider when missing, builds the message, and signs it

The local signers below wrap in-process keys and are mostly useful for
tests, scripts and backend-held service accounts.
"""

import hashlib
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

import base58
import structlog
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from nacl.signing import SigningKey

from siwx.models.account import AccountId, AccountIdLike, ChainId
from siwx.models.message import SiwxMessage
from siwx.models.signature import Signature, SignatureKind, SignedMessage
from siwx.services.verification.tezos import micheline_payload, tz1_address

logger = structlog.get_logger()

PROVIDER_FIELDS = ("network", "address", "chain_id")

# First 32 characters of the mainnet genesis hash (CAIP-2 reference)
SOLANA_MAINNET_REFERENCE = "5eykt4UsFv8P8NJdTREpY1vzqKqZKvdp"
TEZOS_MAINNET_REFERENCE = "NetXdQprcVkpaWU"


@runtime_checkable
class Signer(Protocol):
    async def sign(self, data: bytes) -> Signature: ...


@runtime_checkable
class Auth(Signer, Protocol):
    """Signer that also knows its network label and account."""

    network: str

    async def account_id(self) -> AccountIdLike: ...


async def sign_message(message: SiwxMessage, signer: Signer) -> SignedMessage:
    """Sign the UTF-8 canonical text of message with signer."""
    signature = await signer.sign(message.signing_input())
    logger.debug(
        "siwx_message_signed",
        address=message.address,
        kind=signature.kind,
        signature_length=len(signature.raw),
    )
    return SignedMessage(message=message, signature=signature)


async def request(auth: Signer, fields: Mapping[str, Any]) -> SignedMessage:
    """Build and sign a message, taking account fields from auth if absent.

    Args:
        auth: Signer; must also be an Auth unless fields carry network,
            address and chain_id
        fields: SiwxMessage constructor fields

    Raises:
        TypeError: If account fields are missing and auth is not an Auth
        FieldError: If a message field is invalid
    """
    full_fields = dict(fields)
    if not all(name in full_fields for name in PROVIDER_FIELDS):
        if not isinstance(auth, Auth):
            raise TypeError("No provider fields present and signer cannot supply them")
        account_id = await auth.account_id()
        full_fields.update(
            network=auth.network,
            address=account_id.address,
            chain_id=account_id.chain_id.reference,
        )
    message = SiwxMessage(**full_fields)
    return await sign_message(message, auth)


class EthereumAccountSigner:
    """Auth backed by an eth-account LocalAccount, producing eip191 signatures."""

    network = "Ethereum"

    def __init__(self, account: LocalAccount, chain_id: int | str = 1):
        self.account = account
        self.chain_id = str(chain_id)

    async def account_id(self) -> AccountId:
        return AccountId(chain_id=ChainId("eip155", self.chain_id), address=self.account.address)

    async def sign(self, data: bytes) -> Signature:
        signed = self.account.sign_message(encode_defunct(primitive=data))
        return Signature(kind=SignatureKind.EIP191, raw=bytes(signed.signature))


class SolanaKeypairSigner:
    """Auth backed by a PyNaCl SigningKey, producing solana-ed25519 signatures."""

    network = "Solana"

    def __init__(self, signing_key: SigningKey, reference: str = SOLANA_MAINNET_REFERENCE):
        self.signing_key = signing_key
        self.reference = reference

    @property
    def address(self) -> str:
        return base58.b58encode(bytes(self.signing_key.verify_key)).decode("ascii")

    async def account_id(self) -> AccountId:
        return AccountId(chain_id=ChainId("solana", self.reference), address=self.address)

    async def sign(self, data: bytes) -> Signature:
        return Signature(
            kind=SignatureKind.SOLANA_ED25519, raw=self.signing_key.sign(data).signature
        )


class TezosKeypairSigner:
    """Auth backed by a PyNaCl SigningKey, producing tezos-ed25519 signatures."""

    network = "Tezos"

    def __init__(self, signing_key: SigningKey, reference: str = TEZOS_MAINNET_REFERENCE):
        self.signing_key = signing_key
        self.reference = reference

    @property
    def public_key(self) -> bytes:
        return bytes(self.signing_key.verify_key)

    @property
    def address(self) -> str:
        return tz1_address(self.public_key)

    async def account_id(self) -> AccountId:
        return AccountId(chain_id=ChainId("tezos", self.reference), address=self.address)

    async def sign(self, data: bytes) -> Signature:
        payload = micheline_payload(data.decode("utf-8"))
        digest = hashlib.blake2b(payload, digest_size=32).digest()
        return Signature(
            kind=SignatureKind.TEZOS_ED25519, raw=self.signing_key.sign(digest).signature
        )
