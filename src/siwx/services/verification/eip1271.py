"""ERC-1271 signature verification for smart-contract accounts.

Contract wallets (Safe, Base Account, ...) validate signatures on-chain via
``isValidSignature(bytes32 hash, bytes signature)``. The hash is the same
EIP-191 digest an EOA would sign. The on-chain call is a capability supplied
by the caller (ContractSignatureChecker); Eip1271Verifier itself does no I/O.

Web3ContractSignatureChecker is a ready-made checker backed by a web3.py
connection.
"""

from typing import Protocol

import structlog
from eth_account.messages import _hash_eip191_message, encode_defunct
from eth_utils.address import to_checksum_address
from web3 import Web3

from siwx.exceptions import ContractCallError
from siwx.models.signature import SignatureKind, SignedMessage
from siwx.services.verification.registry import ensure_kind

logger = structlog.get_logger()

# ERC-1271 magic value for valid signatures
ERC1271_MAGIC_VALUE = bytes.fromhex("1626ba7e")

# Minimal ABI for ERC-1271 isValidSignature function
ERC1271_ABI = [
    {
        "constant": True,
        "inputs": [
            {"name": "_hash", "type": "bytes32"},
            {"name": "_signature", "type": "bytes"},
        ],
        "name": "isValidSignature",
        "outputs": [{"name": "magicValue", "type": "bytes4"}],
        "type": "function",
    }
]


class ContractSignatureChecker(Protocol):
    """Capability answering ERC-1271 isValidSignature for a contract account."""

    def is_valid_signature(self, address: str, message_hash: bytes, signature: bytes) -> bool: ...


def eip191_digest(text: str) -> bytes:
    """keccak256 of the EIP-191 personal message encoding of text."""
    return _hash_eip191_message(encode_defunct(text=text))


class Eip1271Verifier:
    """Verify eip1271 signatures through a caller-supplied contract checker."""

    kind = SignatureKind.EIP1271.value

    def __init__(self, checker: ContractSignatureChecker):
        self.checker = checker

    def verify(self, signed: SignedMessage) -> bool:
        """Ask the contract at the message address whether the signature is valid.

        Raises:
            UnsupportedSignatureKind: If the signature is not eip1271
            ContractCallError: If the checker cannot perform the call
        """
        ensure_kind(self, signed)
        address = signed.message.address
        digest = eip191_digest(signed.message.to_string())

        logger.debug(
            "erc1271_signature_verification_attempt",
            wallet_address=address,
            signature_length=len(signed.signature.raw),
        )
        is_valid = self.checker.is_valid_signature(address, digest, signed.signature.raw)
        if is_valid:
            logger.info("erc1271_signature_verification_success", wallet_address=address)
        else:
            logger.warning("erc1271_signature_verification_failed", wallet_address=address)
        return is_valid


class Web3ContractSignatureChecker:
    """ContractSignatureChecker calling isValidSignature through web3.py.

    Example:
        >>> from web3 import Web3
        >>> w3 = Web3(Web3.HTTPProvider("https://..."))
        >>> verifier = Eip1271Verifier(Web3ContractSignatureChecker(w3))
    """

    def __init__(self, w3: Web3):
        self.w3 = w3

    def is_valid_signature(self, address: str, message_hash: bytes, signature: bytes) -> bool:
        """Call isValidSignature on the contract at address.

        Raises:
            ContractCallError: If the contract is not deployed or the call fails
        """
        try:
            checksummed = to_checksum_address(address)
        except ValueError as e:
            raise ContractCallError(address, f"invalid contract address: {e}") from e

        # Smart wallets are deployed lazily; no code means nothing to ask
        try:
            contract_code = self.w3.eth.get_code(checksummed)
        except Exception as e:
            logger.error(
                "erc1271_get_code_error",
                wallet_address=checksummed,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ContractCallError(checksummed, f"failed to fetch contract code: {e}") from e
        if len(contract_code) == 0:
            logger.warning("erc1271_contract_not_deployed", wallet_address=checksummed)
            raise ContractCallError(checksummed, "no contract deployed at address")

        contract = self.w3.eth.contract(address=checksummed, abi=ERC1271_ABI)
        try:
            magic_value = contract.functions.isValidSignature(message_hash, signature).call()
        except Exception as e:
            logger.error(
                "erc1271_contract_call_error",
                wallet_address=checksummed,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ContractCallError(checksummed, f"isValidSignature call failed: {e}") from e

        # Convert result to bytes if it's hex string or int
        if isinstance(magic_value, str):
            magic_value = bytes.fromhex(magic_value.removeprefix("0x"))
        elif isinstance(magic_value, int):
            magic_value = magic_value.to_bytes(4, byteorder="big")

        is_valid = bytes(magic_value) == ERC1271_MAGIC_VALUE
        if not is_valid:
            logger.debug(
                "erc1271_magic_value_mismatch",
                wallet_address=checksummed,
                magic_value=bytes(magic_value).hex() if magic_value else None,
                expected=ERC1271_MAGIC_VALUE.hex(),
            )
        return is_valid
