"""CLI commands for parsing and verifying SIWx messages.

Usage:
    python -m siwx.cli parse FILE
    python -m siwx.cli nonce
    python -m siwx.cli verify FILE --kind KIND --signature HEX [OPTIONS]

Examples:
    # Print the fields of a message as JSON
    python -m siwx.cli parse message.txt

    # Verify a MetaMask personal_sign signature
    python -m siwx.cli verify message.txt --kind eip191 --signature 0x5d3f...

    # Verify a smart-wallet signature through an RPC endpoint
    python -m siwx.cli verify message.txt --kind eip1271 --signature 0x... \\
        --rpc-url https://mainnet.example/rpc

    # Read the message from stdin
    cat message.txt | python -m siwx.cli verify - --kind solana-ed25519 --signature 0x...

Exit codes: 0 (valid / parsed), 1 (signature invalid), 2 (malformed input).
"""

import json
import sys
from argparse import ArgumentParser, Namespace

import structlog
from pydantic import ValidationError
from web3 import Web3

from siwx.core.config import Settings, configure_logging
from siwx.exceptions import SiwxError
from siwx.models.message import SiwxMessage, generate_nonce
from siwx.models.signature import Signature, SignatureKind, SignedMessage
from siwx.services.verification import (
    Eip1271Verifier,
    TezosEd25519Verifier,
    VerifierRegistry,
    Web3ContractSignatureChecker,
    default_registry,
    verify,
)

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_MALFORMED = 2


def parse_args(argv: list[str] | None = None) -> Namespace:
    """Parse command-line arguments."""
    parser = ArgumentParser(
        prog="siwx",
        description="Parse and verify Sign-In-With-X messages",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )
    subcommands = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subcommands.add_parser("parse", help="Print message fields as JSON")
    parse_cmd.add_argument("file", help="Message text file, or - for stdin")

    subcommands.add_parser("nonce", help="Print a fresh random nonce")

    verify_cmd = subcommands.add_parser("verify", help="Verify a message signature")
    verify_cmd.add_argument("file", help="Message text file, or - for stdin")
    verify_cmd.add_argument(
        "--kind",
        required=True,
        help=f"Signature kind ({', '.join(k.value for k in SignatureKind)})",
    )
    verify_cmd.add_argument("--signature", required=True, help="Signature as hex")
    verify_cmd.add_argument(
        "--rpc-url",
        help="JSON-RPC endpoint for eip1271 checks (default: SIWX_RPC_URL)",
    )
    verify_cmd.add_argument(
        "--public-key",
        help="Signer public key (edpk...) for tezos-ed25519",
    )

    return parser.parse_args(argv)


def read_message(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def build_registry(args: Namespace, settings: Settings) -> VerifierRegistry:
    """Default registry plus the capabilities the arguments make available."""
    registry = default_registry()
    rpc_url = args.rpc_url or settings.rpc_url
    if rpc_url:
        w3 = Web3(Web3.HTTPProvider(rpc_url))
        registry = registry.register(Eip1271Verifier(Web3ContractSignatureChecker(w3)))
    if args.public_key:
        public_key = args.public_key
        registry = registry.register(TezosEd25519Verifier(lambda _address: public_key))
    return registry


def run_parse(args: Namespace) -> int:
    message = SiwxMessage.from_string(read_message(args.file))
    print(json.dumps(message.to_fields(), indent=2))
    return EXIT_OK


def run_nonce(settings: Settings) -> int:
    print(generate_nonce(settings.nonce_entropy_bits))
    return EXIT_OK


def run_verify(args: Namespace, settings: Settings) -> int:
    message = SiwxMessage.from_string(read_message(args.file))
    try:
        signature = Signature.from_hex(args.kind, args.signature)
    except ValueError as e:
        print(f"Error: Invalid signature hex format: {e}", file=sys.stderr)
        return EXIT_MALFORMED

    is_valid = verify(SignedMessage(message, signature), build_registry(args, settings))
    logger.info("cli.verified", address=message.address, kind=args.kind, valid=is_valid)
    print("valid" if is_valid else "invalid")
    return EXIT_OK if is_valid else EXIT_INVALID


def run(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code: 0 (success), 1 (invalid signature), 2 (malformed input)
    """
    args = parse_args(argv)

    try:
        settings = Settings()  # type: ignore[call-arg]
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_MALFORMED
    if args.verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)

    logger.debug("cli.started", command=args.command)

    try:
        if args.command == "nonce":
            return run_nonce(settings)
        if args.command == "parse":
            return run_parse(args)
        return run_verify(args, settings)

    except SiwxError as e:
        logger.error(
            "cli.siwx_error",
            error=str(e),
            error_type=type(e).__name__,
        )
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_MALFORMED

    except OSError as e:
        logger.error("cli.read_error", file=args.file, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_MALFORMED


def main() -> None:
    """Synchronous entry point for CLI."""
    sys.exit(run())


if __name__ == "__main__":
    main()
