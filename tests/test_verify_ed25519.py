"""Tests for Solana and Tezos ed25519 signature verification."""

import dataclasses
import hashlib

import base58
import pytest

from siwx.exceptions import MalformedSignature, UnsupportedSignatureKind
from siwx.models.signature import Signature, SignatureKind, SignedMessage
from siwx.services.verification import (
    SolanaEd25519Verifier,
    TezosEd25519Verifier,
    default_registry,
    verify,
)
from siwx.services.verification.tezos import (
    EDPK_PREFIX,
    EDSIG_PREFIX,
    micheline_payload,
    tz1_address,
)


class TestSolanaVerification:
    @pytest.fixture
    def address(self, solana_key) -> str:
        return base58.b58encode(bytes(solana_key.verify_key)).decode("ascii")

    @pytest.fixture
    def message(self, make_message, address):
        return make_message(
            network="Solana", address=address, chain_id="5eykt4UsFv8P8NJdTREpY1vzqKqZKvdp"
        )

    def sign(self, key, message) -> Signature:
        return Signature(
            kind=SignatureKind.SOLANA_ED25519, raw=key.sign(message.signing_input()).signature
        )

    def test_valid_signature_verifies(self, message, solana_key):
        signed = SignedMessage(message, self.sign(solana_key, message))

        assert verify(signed) is True

    def test_signature_by_other_key_fails(self, message, tezos_key):
        assert verify(SignedMessage(message, self.sign(tezos_key, message))) is False

    def test_tampered_nonce_fails(self, message, solana_key):
        signature = self.sign(solana_key, message)
        tampered = dataclasses.replace(message, nonce="abcdefgh")

        assert verify(SignedMessage(tampered, signature)) is False

    def test_signature_over_prefixed_text_fails(self, message, solana_key):
        """Solana signs the raw text; an EIP-191 style prefix must not verify."""
        data = b"\x19Ethereum Signed Message:\n" + message.signing_input()
        signature = Signature("solana-ed25519", solana_key.sign(data).signature)

        assert verify(SignedMessage(message, signature)) is False

    def test_wrong_signature_length_raises_malformed(self, message):
        with pytest.raises(MalformedSignature) as exc_info:
            verify(SignedMessage(message, Signature("solana-ed25519", b"\x00" * 65)))

        assert exc_info.value.kind == "solana-ed25519"

    @pytest.mark.parametrize(
        "address", ["0xAbCdEf0123456789aBcDeF0123456789AbCdEf01", "3yZe7d", "11111111"]
    )
    def test_non_public_key_address_returns_false(self, make_message, solana_key, address):
        message = make_message(network="Solana", address=address)

        assert verify(SignedMessage(message, self.sign(solana_key, message))) is False

    def test_eip191_signature_rejected_by_solana_verifier(self, message):
        with pytest.raises(UnsupportedSignatureKind):
            SolanaEd25519Verifier().verify(SignedMessage(message, Signature("eip191", b"\x00")))


class TestTezosVerification:
    @pytest.fixture
    def public_key(self, tezos_key) -> bytes:
        return bytes(tezos_key.verify_key)

    @pytest.fixture
    def address(self, public_key) -> str:
        return tz1_address(public_key)

    @pytest.fixture
    def message(self, make_message, address):
        return make_message(network="Tezos", address=address, chain_id="NetXdQprcVkpaWU")

    @pytest.fixture
    def signature(self, tezos_key, message) -> Signature:
        digest = hashlib.blake2b(micheline_payload(message.to_string()), digest_size=32).digest()
        return Signature(kind=SignatureKind.TEZOS_ED25519, raw=tezos_key.sign(digest).signature)

    def test_tz1_address_format(self, address):
        assert address.startswith("tz1")
        assert len(address) == 36

    def test_micheline_payload_layout(self):
        assert micheline_payload("abc") == b"\x05\x01\x00\x00\x00\x03abc"

    def test_valid_signature_with_raw_key(self, message, signature, public_key):
        verifier = TezosEd25519Verifier(lambda address: public_key)

        assert verifier.verify(SignedMessage(message, signature)) is True

    def test_valid_signature_with_edpk_key_and_edsig_encoding(
        self, message, signature, public_key
    ):
        edpk = base58.b58encode_check(EDPK_PREFIX + public_key).decode("ascii")
        edsig = base58.b58encode_check(EDSIG_PREFIX + signature.raw)
        assert edpk.startswith("edpk")
        assert edsig.startswith(b"edsig")
        verifier = TezosEd25519Verifier(lambda address: edpk)

        encoded = Signature(kind="tezos-ed25519", raw=edsig)

        assert verifier.verify(SignedMessage(message, encoded)) is True

    def test_registered_verifier_dispatches(self, message, signature, public_key):
        registry = default_registry().register(TezosEd25519Verifier(lambda address: public_key))

        assert verify(SignedMessage(message, signature), registry) is True

    def test_default_registry_has_no_tezos_verifier(self, message, signature):
        with pytest.raises(UnsupportedSignatureKind):
            verify(SignedMessage(message, signature))

    def test_key_not_matching_address_fails(self, message, signature, solana_key):
        verifier = TezosEd25519Verifier(lambda address: bytes(solana_key.verify_key))

        assert verifier.verify(SignedMessage(message, signature)) is False

    def test_unknown_key_fails(self, message, signature):
        verifier = TezosEd25519Verifier(lambda address: None)

        assert verifier.verify(SignedMessage(message, signature)) is False

    def test_tampered_message_fails(self, message, signature, public_key):
        verifier = TezosEd25519Verifier(lambda address: public_key)
        tampered = dataclasses.replace(message, chain_id="NetXm8tYqnMWky1")

        assert verifier.verify(SignedMessage(tampered, signature)) is False

    def test_signature_over_plain_text_fails(self, message, tezos_key, public_key):
        """Tezos signs the hashed Micheline payload, not the raw text."""
        raw = tezos_key.sign(message.signing_input()).signature
        verifier = TezosEd25519Verifier(lambda address: public_key)

        assert verifier.verify(SignedMessage(message, Signature("tezos-ed25519", raw))) is False

    @pytest.mark.parametrize("raw", [b"", b"\x00" * 63, b"edsigNotBase58!!", b"\x00" * 65])
    def test_malformed_signature_raises(self, message, public_key, raw):
        verifier = TezosEd25519Verifier(lambda address: public_key)

        with pytest.raises(MalformedSignature):
            verifier.verify(SignedMessage(message, Signature("tezos-ed25519", raw)))
