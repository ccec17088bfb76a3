"""pytest fixtures for SIWx tests.

Provides:
- eth_account / other_eth_account: Deterministic Ethereum keys
- solana_key / tezos_key: Deterministic ed25519 signing keys
- make_message: Factory for SiwxMessage with valid defaults
- utc_timezone: Autouse fixture enforcing UTC timezone
"""

import os

import pytest
from eth_account import Account
from nacl.signing import SigningKey

from siwx.models.message import SiwxMessage


@pytest.fixture(scope="session", autouse=True)
def utc_timezone():
    """Enforce UTC timezone for all tests."""
    os.environ["TZ"] = "UTC"
    yield


@pytest.fixture
def eth_account():
    """Ethereum account with a fixed private key (same across test runs)."""
    return Account.from_key("0x1234567890abcdef1234567890abcdef1234567890abcdef1234567890abcdef")


@pytest.fixture
def other_eth_account():
    """A different Ethereum account for negative tests."""
    return Account.from_key("0xfedcba0987654321fedcba0987654321fedcba0987654321fedcba0987654321")


@pytest.fixture
def solana_key() -> SigningKey:
    return SigningKey(bytes(range(32)))


@pytest.fixture
def tezos_key() -> SigningKey:
    return SigningKey(bytes(range(32, 64)))


@pytest.fixture
def make_message():
    """Factory building a SiwxMessage; keyword arguments override defaults."""

    def _make(**overrides) -> SiwxMessage:
        fields = {
            "domain": "example.com",
            "network": "Ethereum",
            "address": "0xAbCdEf0123456789aBcDeF0123456789AbCdEf01",
            "uri": "https://example.com",
            "chain_id": "1",
            "nonce": "12345678",
            "issued_at": "2024-01-01T00:00:00Z",
        }
        fields.update(overrides)
        return SiwxMessage(**fields)

    return _make
