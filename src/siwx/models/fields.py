"""Validated field types for SIWx messages.

Each ``to_*`` function takes a raw value and returns it as a validated
string, or raises FieldError. Values that are already canonical are returned
unchanged, so validating twice is a no-op.
"""

import re
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import NewType

from siwx.exceptions import FieldError

DomainString = NewType("DomainString", str)
NetworkString = NewType("NetworkString", str)
AddressString = NewType("AddressString", str)
NonEmptyString = NewType("NonEmptyString", str)
URIString = NewType("URIString", str)
VersionString = NewType("VersionString", str)
ChainIdString = NewType("ChainIdString", str)
NonceString = NewType("NonceString", str)
DateTimeString = NewType("DateTimeString", str)

SUPPORTED_VERSION = "1"
MIN_NONCE_LENGTH = 8

# [userinfo@]host[:port], host is a reg-name, IPv4 or bracketed IPv6 literal
_DOMAIN_RE = re.compile(
    r"^(?:[A-Za-z0-9\-._~!$&'()*+,;=:%]+@)?"
    r"(?:\[[0-9A-Fa-f:.]+\]|[A-Za-z0-9\-._~!$&'()*+,;=%]+)"
    r"(?::[0-9]{1,5})?$"
)
_URI_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:\S+$")
_DATETIME_RE = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"[Tt](?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})(?:\.\d+)?"
    r"(?P<offset>[Zz]|[+-](?P<off_hour>\d{2}):(?P<off_minute>\d{2}))$"
)


def _require_str(value: object, field: str) -> str:
    if not isinstance(value, str):
        raise FieldError(field, value, f"expected a string, got {type(value).__name__}")
    return value


def _require_single_line(value: str, field: str) -> str:
    if not value:
        raise FieldError(field, value, "must not be empty")
    if "\n" in value or "\r" in value:
        raise FieldError(field, value, "must be a single line")
    return value


def to_non_empty_string(value: object, field: str) -> NonEmptyString:
    """Validate a non-empty, single-line string (statement, request_id)."""
    return NonEmptyString(_require_single_line(_require_str(value, field), field))


def to_network_string(value: object, field: str = "network") -> NetworkString:
    return NetworkString(_require_single_line(_require_str(value, field), field))


def to_address_string(value: object, field: str = "address") -> AddressString:
    """Validate an account address.

    Case is preserved: whether it matters is decided by the network's verifier.
    """
    address = _require_single_line(_require_str(value, field), field)
    if any(ch.isspace() for ch in address):
        raise FieldError(field, value, "must not contain whitespace")
    return AddressString(address)


def to_domain_string(value: object, field: str = "domain") -> DomainString:
    """Validate an RFC 3986 authority: ``[userinfo@]host[:port]``."""
    domain = _require_single_line(_require_str(value, field), field)
    if "://" in domain:
        raise FieldError(field, value, "must not include a scheme")
    if not _DOMAIN_RE.match(domain):
        raise FieldError(field, value, "must be an authority of the form host[:port]")
    return DomainString(domain)


def to_uri_string(value: object, field: str = "uri") -> URIString:
    """Validate an absolute URI (scheme followed by a non-empty remainder)."""
    uri = _require_single_line(_require_str(value, field), field)
    if not _URI_RE.match(uri):
        raise FieldError(field, value, "must be an absolute URI")
    return URIString(uri)


def to_version_string(value: object, field: str = "version") -> VersionString:
    if isinstance(value, bool):
        raise FieldError(field, value, "expected a string or integer")
    if isinstance(value, int):
        value_str = str(value)
    else:
        value_str = _require_single_line(_require_str(value, field), field)
    if value_str != SUPPORTED_VERSION:
        raise FieldError(field, value, f"only version {SUPPORTED_VERSION} is supported")
    return VersionString(value_str)


def to_chain_id_string(value: object, field: str = "chain_id") -> ChainIdString:
    """Validate a chain reference. Integers are rendered in decimal."""
    if isinstance(value, bool):
        raise FieldError(field, value, "expected a string or integer")
    if isinstance(value, int):
        return ChainIdString(str(value))
    chain_id = _require_single_line(_require_str(value, field), field)
    if any(ch.isspace() for ch in chain_id):
        raise FieldError(field, value, "must not contain whitespace")
    return ChainIdString(chain_id)


def to_nonce_string(value: object, field: str = "nonce") -> NonceString:
    nonce = _require_single_line(_require_str(value, field), field)
    if len(nonce) < MIN_NONCE_LENGTH:
        raise FieldError(field, value, f"must be at least {MIN_NONCE_LENGTH} characters")
    return NonceString(nonce)


def format_datetime(value: datetime) -> str:
    """Format a datetime as ``YYYY-MM-DDTHH:MM:SSZ`` in UTC.

    Naive datetimes are taken as UTC. Fractional seconds are dropped.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def to_datetime_string(value: object, field: str) -> DateTimeString:
    """Validate an RFC 3339 date-time string, or format a datetime object.

    Strings are checked for calendar validity and returned untouched.
    """
    if isinstance(value, datetime):
        return DateTimeString(format_datetime(value))
    raw = _require_single_line(_require_str(value, field), field)
    match = _DATETIME_RE.match(raw)
    if not match:
        raise FieldError(field, value, "must be an ISO-8601 date-time")
    try:
        datetime(
            int(match["year"]),
            int(match["month"]),
            int(match["day"]),
            int(match["hour"]),
            int(match["minute"]),
            int(match["second"]),
        )
    except ValueError as e:
        raise FieldError(field, value, f"invalid date-time: {e}") from e
    if match["off_hour"] is not None:
        if int(match["off_hour"]) > 23 or int(match["off_minute"]) > 59:
            raise FieldError(field, value, "invalid UTC offset")
    return DateTimeString(raw)


def to_resources(value: object, field: str = "resources") -> tuple[URIString, ...] | None:
    """Validate an ordered sequence of URIs.

    An empty sequence is treated as absent and returns None.
    """
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise FieldError(field, value, "expected a sequence of URIs")
    resources = tuple(to_uri_string(item, field) for item in value)
    return resources or None
