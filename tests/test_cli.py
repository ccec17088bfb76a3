"""Tests for the siwx command-line interface."""

import base58
import pytest
import structlog
from eth_account.messages import encode_defunct

from siwx.cli.verify_message import EXIT_INVALID, EXIT_MALFORMED, EXIT_OK, parse_args, run
from siwx.services.signing import TezosKeypairSigner
from siwx.services.verification.tezos import EDPK_PREFIX


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("APP_ENV", "LOG_LEVEL", "SIWX_NONCE_ENTROPY_BITS", "SIWX_RPC_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    structlog.reset_defaults()


@pytest.fixture
def message(make_message, eth_account):
    return make_message(address=eth_account.address, statement="Sign in to Example")


@pytest.fixture
def message_file(tmp_path, message):
    path = tmp_path / "message.txt"
    path.write_text(message.to_string(), encoding="utf-8")
    return path


@pytest.fixture
def signature_hex(eth_account, message) -> str:
    return eth_account.sign_message(encode_defunct(text=message.to_string())).signature.hex()


class TestParseArgs:
    def test_verify_arguments(self):
        args = parse_args(["verify", "msg.txt", "--kind", "eip191", "--signature", "0x00"])

        assert args.command == "verify"
        assert args.file == "msg.txt"
        assert args.kind == "eip191"
        assert args.rpc_url is None

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestParseCommand:
    def test_prints_fields_as_json(self, message_file, eth_account, capsys):
        exit_code = run(["parse", str(message_file)])

        out = capsys.readouterr().out
        assert exit_code == EXIT_OK
        assert f'"address": "{eth_account.address}"' in out
        assert '"statement": "Sign in to Example"' in out

    def test_malformed_message_exits_2(self, tmp_path, capsys):
        path = tmp_path / "bad.txt"
        path.write_text("not a siwx message", encoding="utf-8")

        exit_code = run(["parse", str(path)])

        assert exit_code == EXIT_MALFORMED
        assert "Error:" in capsys.readouterr().err

    def test_missing_file_exits_2(self, tmp_path):
        assert run(["parse", str(tmp_path / "missing.txt")]) == EXIT_MALFORMED


class TestNonceCommand:
    def test_prints_nonce_sized_by_settings(self, monkeypatch, capsys):
        monkeypatch.setenv("SIWX_NONCE_ENTROPY_BITS", "128")

        exit_code = run(["nonce"])

        nonce = capsys.readouterr().out.strip()
        assert exit_code == EXIT_OK
        assert len(nonce) == 22
        assert nonce.isalnum()


class TestVerifyCommand:
    def test_valid_signature_exits_0(self, message_file, signature_hex, capsys):
        # Act
        exit_code = run(
            ["verify", str(message_file), "--kind", "eip191", "--signature", signature_hex]
        )

        # Assert
        assert exit_code == EXIT_OK
        assert capsys.readouterr().out.strip() == "valid"

    def test_wrong_signer_exits_1(self, message_file, message, other_eth_account, capsys):
        signature = other_eth_account.sign_message(encode_defunct(text=message.to_string()))

        exit_code = run(
            [
                "verify",
                str(message_file),
                "--kind",
                "eip191",
                "--signature",
                signature.signature.hex(),
            ]
        )

        assert exit_code == EXIT_INVALID
        assert capsys.readouterr().out.strip() == "invalid"

    def test_bad_hex_exits_2(self, message_file, capsys):
        exit_code = run(["verify", str(message_file), "--kind", "eip191", "--signature", "0xzz"])

        assert exit_code == EXIT_MALFORMED
        assert "Invalid signature hex format" in capsys.readouterr().err

    def test_wrong_length_exits_2(self, message_file):
        exit_code = run(["verify", str(message_file), "--kind", "eip191", "--signature", "0x00"])

        assert exit_code == EXIT_MALFORMED

    def test_eip1271_without_rpc_url_exits_2(self, message_file, signature_hex):
        exit_code = run(
            ["verify", str(message_file), "--kind", "eip1271", "--signature", signature_hex]
        )

        assert exit_code == EXIT_MALFORMED

    @pytest.mark.asyncio
    async def test_tezos_with_public_key(self, tmp_path, make_message, tezos_key, capsys):
        # Arrange
        signer = TezosKeypairSigner(tezos_key)
        message = make_message(network="Tezos", address=signer.address, chain_id=signer.reference)
        path = tmp_path / "tezos.txt"
        path.write_text(message.to_string(), encoding="utf-8")
        edpk = base58.b58encode_check(EDPK_PREFIX + signer.public_key).decode("ascii")
        signature = await signer.sign(message.signing_input())

        # Act
        exit_code = run(
            [
                "verify",
                str(path),
                "--kind",
                "tezos-ed25519",
                "--signature",
                signature.to_hex(),
                "--public-key",
                edpk,
            ]
        )

        # Assert
        assert exit_code == EXIT_OK
        assert capsys.readouterr().out.strip() == "valid"


class TestSettingsErrors:
    @pytest.mark.parametrize(
        ("name", "value"), [("LOG_LEVEL", "LOUD"), ("SIWX_NONCE_ENTROPY_BITS", "8")]
    )
    def test_invalid_setting_exits_2(self, monkeypatch, capsys, name, value):
        monkeypatch.setenv(name, value)

        exit_code = run(["nonce"])

        captured = capsys.readouterr()
        assert exit_code == EXIT_MALFORMED
        assert captured.out == ""
        assert name in captured.err
