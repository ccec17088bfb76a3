"""CAIP-2 / CAIP-10 account identifiers.

SiwxMessage.make only needs something shaped like AccountIdLike; any
CAIP library value with ``address`` and ``chain_id.namespace/reference``
works. AccountId and ChainId are small value objects for callers without one.
"""

from dataclasses import dataclass
from typing import Protocol

# CAIP-2 namespace -> network label used in the "wants you to sign in" line
NETWORK_BY_NAMESPACE = {
    "eip155": "Ethereum",
    "solana": "Solana",
    "tezos": "Tezos",
}


class ChainIdLike(Protocol):
    @property
    def namespace(self) -> str: ...

    @property
    def reference(self) -> str: ...


class AccountIdLike(Protocol):
    @property
    def address(self) -> str: ...

    @property
    def chain_id(self) -> ChainIdLike: ...


@dataclass(frozen=True)
class ChainId:
    """CAIP-2 chain identifier, e.g. ``eip155:1``."""

    namespace: str
    reference: str

    @classmethod
    def parse(cls, value: str) -> "ChainId":
        namespace, sep, reference = value.partition(":")
        if not sep or not namespace or not reference:
            raise ValueError(f"Invalid CAIP-2 chain id: {value!r}")
        return cls(namespace=namespace, reference=reference)

    def __str__(self) -> str:
        return f"{self.namespace}:{self.reference}"


@dataclass(frozen=True)
class AccountId:
    """CAIP-10 account identifier, e.g. ``eip155:1:0xab16...``."""

    chain_id: ChainId
    address: str

    @classmethod
    def parse(cls, value: str) -> "AccountId":
        chain, sep, address = value.rpartition(":")
        if not sep or not address:
            raise ValueError(f"Invalid CAIP-10 account id: {value!r}")
        return cls(chain_id=ChainId.parse(chain), address=address)

    def __str__(self) -> str:
        return f"{self.chain_id}:{self.address}"


def network_for_namespace(namespace: str) -> str:
    """Return the network label for a CAIP-2 namespace.

    Raises:
        ValueError: If the namespace has no known network label
    """
    try:
        return NETWORK_BY_NAMESPACE[namespace.lower()]
    except KeyError:
        raise ValueError(
            f"No network label known for namespace {namespace!r}; pass network explicitly"
        ) from None
