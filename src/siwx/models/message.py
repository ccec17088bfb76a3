"""SIWx message entity - canonical Sign-In-With-X text and its fields.

The canonical text produced by ``to_string`` is the exact byte sequence a
wallet signs, so its layout is fixed:

    {domain} wants you to sign in with your {network} account:
    {address}

    {statement}

    URI: {uri}
    Version: {version}
    Chain ID: {chain_id}
    Nonce: {nonce}
    Issued At: {issued_at}
    Expiration Time: {expiration_time}
    Not Before: {not_before}
    Request ID: {request_id}
    Resources:
    - {resource}

The statement line and every line after "Issued At" are omitted when the
field is absent. The blank lines around the statement are always present.
There is no trailing newline.
"""

import math
import secrets
import string
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TypedDict

import structlog

from siwx.exceptions import FieldError, ParseError
from siwx.models.account import AccountIdLike, network_for_namespace
from siwx.models.fields import (
    MIN_NONCE_LENGTH,
    SUPPORTED_VERSION,
    format_datetime,
    to_address_string,
    to_chain_id_string,
    to_datetime_string,
    to_domain_string,
    to_network_string,
    to_non_empty_string,
    to_nonce_string,
    to_resources,
    to_uri_string,
    to_version_string,
)
from siwx.parsing import RawFields, parse

logger = structlog.get_logger()

NONCE_ALPHABET = string.ascii_letters + string.digits
DEFAULT_NONCE_ENTROPY_BITS = 96


class BuildFields(TypedDict, total=False):
    """Fields accepted by SiwxMessage.make.

    ``domain`` and ``uri`` are required; network, address and chain_id come
    from the account identifier.
    """

    domain: str
    uri: str
    statement: str
    version: str | int
    nonce: str
    issued_at: str | datetime
    expiration_time: str | datetime
    not_before: str | datetime
    request_id: str
    resources: Sequence[str]


def generate_nonce(entropy_bits: int = DEFAULT_NONCE_ENTROPY_BITS) -> str:
    """Generate a random alphanumeric nonce carrying at least ``entropy_bits``.

    96 bits yields 17 characters.
    """
    length = max(MIN_NONCE_LENGTH, math.ceil(entropy_bits / math.log2(len(NONCE_ALPHABET))))
    return "".join(secrets.choice(NONCE_ALPHABET) for _ in range(length))


@dataclass(frozen=True, kw_only=True)
class SiwxMessage:
    """Immutable SIWx message with validated fields.

    Construction validates every field in canonical order and raises the
    FieldError of the first invalid one.
    """

    domain: str
    network: str
    address: str
    statement: str | None = None
    uri: str
    version: str | int = SUPPORTED_VERSION
    chain_id: str | int
    nonce: str
    issued_at: str | datetime
    expiration_time: str | datetime | None = None
    not_before: str | datetime | None = None
    request_id: str | None = None
    resources: Sequence[str] | None = None

    def __post_init__(self) -> None:
        validated = {
            "domain": to_domain_string(self.domain),
            "network": to_network_string(self.network),
            "address": to_address_string(self.address),
            "statement": _optional(self.statement, lambda v: to_non_empty_string(v, "statement")),
            "uri": to_uri_string(self.uri),
            "version": to_version_string(
                SUPPORTED_VERSION if self.version is None else self.version
            ),
            "chain_id": to_chain_id_string(self.chain_id),
            "nonce": to_nonce_string(self.nonce),
            "issued_at": to_datetime_string(self.issued_at, "issued_at"),
            "expiration_time": _optional(
                self.expiration_time, lambda v: to_datetime_string(v, "expiration_time")
            ),
            "not_before": _optional(
                self.not_before, lambda v: to_datetime_string(v, "not_before")
            ),
            "request_id": _optional(
                self.request_id, lambda v: to_non_empty_string(v, "request_id")
            ),
            "resources": _optional(self.resources, to_resources),
        }
        for name, value in validated.items():
            object.__setattr__(self, name, value)

    @classmethod
    def make(
        cls,
        account_id: AccountIdLike,
        fields: BuildFields,
        *,
        network: str | None = None,
        nonce_entropy_bits: int = DEFAULT_NONCE_ENTROPY_BITS,
    ) -> "SiwxMessage":
        """Build a message for an account, filling generated defaults.

        Args:
            account_id: CAIP-10 style account; provides address and chain_id
            fields: Message fields (at least domain and uri)
            network: Network label; derived from the account namespace if None
            nonce_entropy_bits: Entropy of a generated nonce

        Returns:
            SiwxMessage with nonce, issued_at and not_before filled in when
            they were not supplied.

        Raises:
            FieldError: If any supplied or derived field is invalid
            ValueError: If network is None and the namespace is unknown
        """
        if network is None:
            network = network_for_namespace(account_id.chain_id.namespace)

        nonce = fields.get("nonce")
        generated_nonce = not nonce
        if generated_nonce:
            nonce = generate_nonce(nonce_entropy_bits)
            if len(nonce) < MIN_NONCE_LENGTH:
                raise FieldError("nonce", nonce, "error during nonce creation")

        now = format_datetime(datetime.now(timezone.utc))
        values = {
            "network": network,
            "address": account_id.address,
            "chain_id": account_id.chain_id.reference,
            **fields,
            "nonce": nonce,
            "issued_at": fields.get("issued_at") or now,
            "not_before": fields.get("not_before") or now,
            "expiration_time": fields.get("expiration_time") or None,
        }
        message = cls(**values)
        logger.debug(
            "siwx_message_created",
            domain=message.domain,
            network=message.network,
            chain_id=message.chain_id,
            generated_nonce=generated_nonce,
        )
        return message

    @classmethod
    def from_fields(cls, fields: RawFields) -> "SiwxMessage":
        return cls(**fields)

    @classmethod
    def from_string(cls, text: str) -> "SiwxMessage":
        """Parse and validate canonical SIWx text.

        Raises:
            ParseError: If the text is structurally malformed
            FieldError: If a field value is invalid
        """
        return cls.from_fields(parse(text))

    @classmethod
    def from_string_safe(cls, text: str) -> "MessageParseResult":
        """Parse canonical SIWx text without raising for malformed input."""
        try:
            return MessageParseResult(message=cls.from_string(text))
        except (ParseError, FieldError) as e:
            logger.debug(
                "siwx_message_rejected",
                error=str(e),
                error_type=type(e).__name__,
            )
            return MessageParseResult(error=e)

    def to_fields(self) -> RawFields:
        """Return the present fields as raw strings (resources as a list)."""
        fields: RawFields = {
            "domain": self.domain,
            "network": self.network,
            "address": self.address,
            "uri": self.uri,
            "version": self.version,
            "chain_id": self.chain_id,
            "nonce": self.nonce,
            "issued_at": self.issued_at,
        }
        for name in ("statement", "expiration_time", "not_before", "request_id"):
            value = getattr(self, name)
            if value is not None:
                fields[name] = value
        if self.resources is not None:
            fields["resources"] = list(self.resources)
        return fields

    def to_string(self) -> str:
        header = (
            f"{self.domain} wants you to sign in with your {self.network} account:\n"
            f"{self.address}\n\n"
        )
        if self.statement is not None:
            header += f"{self.statement}\n"
        lines = [
            header,
            f"URI: {self.uri}",
            f"Version: {self.version}",
            f"Chain ID: {self.chain_id}",
            f"Nonce: {self.nonce}",
            f"Issued At: {self.issued_at}",
        ]
        if self.expiration_time is not None:
            lines.append(f"Expiration Time: {self.expiration_time}")
        if self.not_before is not None:
            lines.append(f"Not Before: {self.not_before}")
        if self.request_id is not None:
            lines.append(f"Request ID: {self.request_id}")
        if self.resources is not None:
            lines.append("Resources:\n" + "\n".join(f"- {r}" for r in self.resources))
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_string()

    def signing_input(self) -> bytes:
        """UTF-8 bytes of the canonical text, as handed to a signer."""
        return self.to_string().encode("utf-8")


@dataclass(frozen=True)
class MessageParseResult:
    """Outcome of SiwxMessage.from_string_safe: a message or the error."""

    message: SiwxMessage | None = None
    error: ParseError | FieldError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> SiwxMessage:
        """Return the message, raising the stored error if parsing failed."""
        if self.error is not None:
            raise self.error
        if self.message is None:
            raise ValueError("MessageParseResult holds neither a message nor an error")
        return self.message


def _optional(value, convert):
    return None if value is None else convert(value)
