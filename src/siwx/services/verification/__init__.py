"""Signature verification engine.

Verification is dispatched on Signature.kind through a VerifierRegistry.
The default registry handles eip191 and solana-ed25519; eip1271 and
tezos-ed25519 need a caller-supplied capability and are added with
``register``:

    >>> registry = default_registry().register(
    ...     Eip1271Verifier(Web3ContractSignatureChecker(w3))
    ... )
    >>> verify(signed, registry)
"""

from siwx.models.signature import SignedMessage
from siwx.services.verification.eip1271 import (
    ContractSignatureChecker,
    Eip1271Verifier,
    Web3ContractSignatureChecker,
)
from siwx.services.verification.ethereum import Eip191Verifier
from siwx.services.verification.registry import SignatureVerifier, VerifierRegistry
from siwx.services.verification.solana import SolanaEd25519Verifier
from siwx.services.verification.tezos import PublicKeyResolver, TezosEd25519Verifier

_DEFAULT_REGISTRY = VerifierRegistry([Eip191Verifier(), SolanaEd25519Verifier()])


def default_registry() -> VerifierRegistry:
    """Registry with the verifiers that need no external capability."""
    return _DEFAULT_REGISTRY


def verify(signed: SignedMessage, registry: VerifierRegistry | None = None) -> bool:
    """Verify a signed message.

    Args:
        signed: Message and signature to check
        registry: Verifiers to dispatch to (default_registry() if None)

    Returns:
        True if the signature was produced by the message address over the
        message's canonical text, False otherwise.

    Raises:
        UnsupportedSignatureKind: If no verifier handles the signature kind
        MalformedSignature: If the signature cannot be evaluated
        ContractCallError: If an eip1271 check could not be performed
    """
    if registry is None:
        registry = _DEFAULT_REGISTRY
    return registry.verify(signed)


__all__ = [
    "ContractSignatureChecker",
    "Eip1271Verifier",
    "Eip191Verifier",
    "PublicKeyResolver",
    "SignatureVerifier",
    "SolanaEd25519Verifier",
    "TezosEd25519Verifier",
    "VerifierRegistry",
    "Web3ContractSignatureChecker",
    "default_registry",
    "verify",
]
