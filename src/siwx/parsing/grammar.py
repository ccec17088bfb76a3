"""Grammar for canonical SIWx message text.

One sub-parser per line (or line group), composed in the fixed line order.
``parse`` returns the raw field strings; validation of their content is left
to the field types in ``siwx.models.fields``.
"""

from __future__ import annotations

from typing import TypedDict

from siwx.exceptions import ParseError
from siwx.parsing.combinators import (
    Failure,
    Parser,
    Success,
    end_of_input,
    literal,
    many,
    optional,
    rest_of_line,
    sequence,
    take_until,
)

WANT_INFIX = " wants you to sign in with your "
WANT_SUFFIX = " account:"


class RawFields(TypedDict, total=False):
    domain: str
    network: str
    address: str
    statement: str
    uri: str
    version: str
    chain_id: str
    nonce: str
    issued_at: str
    expiration_time: str
    not_before: str
    request_id: str
    resources: list[str]


def _network_line() -> Parser[str]:
    """Network label running up to the trailing " account:" of the header line."""
    rest = rest_of_line("network")

    def run(text: str, offset: int):
        result = rest(text, offset)
        if isinstance(result, Failure):
            return result
        line = result.value
        if not line.endswith(WANT_SUFFIX):
            return Failure(result.offset, repr(WANT_SUFFIX))
        network = line[: -len(WANT_SUFFIX)]
        if not network:
            return Failure(offset, "network")
        return Success(network, result.offset)

    return Parser(run, "network_line")


def _field_line(prefix: str, description: str) -> Parser[str]:
    """``{prefix}{value}`` where value is the rest of the line."""
    return literal(prefix).then(rest_of_line(description))


def _next_line(prefix: str, description: str) -> Parser[str]:
    """``\\n{prefix}{value}``: a field line following the previous line."""
    return literal("\n" + prefix, repr(prefix)).then(rest_of_line(description))


def _optional_field_line(prefix: str, description: str) -> Parser[str | None]:
    return optional(_next_line(prefix, description))


_newline = literal("\n")

header = sequence(
    take_until(WANT_INFIX, "domain").skip(literal(WANT_INFIX)),
    _network_line().skip(_newline),
)
address_line = rest_of_line("address").skip(_newline)
statement_block = _newline.then(optional(rest_of_line("statement").skip(_newline))).skip(_newline)
required_fields = sequence(
    _field_line("URI: ", "URI").skip(_newline),
    _field_line("Version: ", "version").skip(_newline),
    _field_line("Chain ID: ", "chain ID").skip(_newline),
    _field_line("Nonce: ", "nonce").skip(_newline),
    _field_line("Issued At: ", "issued-at time"),
)
optional_fields = sequence(
    _optional_field_line("Expiration Time: ", "expiration time"),
    _optional_field_line("Not Before: ", "not-before time"),
    _optional_field_line("Request ID: ", "request ID"),
)
# A Resources: header must be followed by at least one "- " line
_resource_line = _next_line("- ", "resource URI")
resources_block = optional(
    literal("\nResources:", repr("Resources:")).then(
        sequence(_resource_line, many(_resource_line)).map(lambda items: [items[0], *items[1]])
    )
)

siwx_message: Parser[RawFields] = sequence(
    header,
    address_line,
    statement_block,
    required_fields,
    optional_fields,
    resources_block,
    end_of_input(),
).map(
    lambda parts: _to_raw_fields(*parts[:6]),
)


def _to_raw_fields(header_values, address, statement, required, optionals, resources) -> RawFields:
    domain, network = header_values
    uri, version, chain_id, nonce, issued_at = required
    expiration_time, not_before, request_id = optionals
    fields: RawFields = {
        "domain": domain,
        "network": network,
        "address": address,
        "uri": uri,
        "version": version,
        "chain_id": chain_id,
        "nonce": nonce,
        "issued_at": issued_at,
    }
    if statement is not None:
        fields["statement"] = statement
    if expiration_time is not None:
        fields["expiration_time"] = expiration_time
    if not_before is not None:
        fields["not_before"] = not_before
    if request_id is not None:
        fields["request_id"] = request_id
    if resources is not None:
        fields["resources"] = resources
    return fields


def parse(text: str) -> RawFields:
    """Parse canonical SIWx text into raw field strings.

    Raises:
        ParseError: If the text does not follow the canonical layout
    """
    result = siwx_message(text, 0)
    if isinstance(result, Failure):
        raise _parse_error(text, result)
    return result.value


def _parse_error(text: str, failure: Failure) -> ParseError:
    offset = failure.offset
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    if offset >= len(text):
        found = "end of input"
    else:
        # At a line break, show the line that follows it
        start = offset + 1 if text[offset] == "\n" else offset
        line_end = text.find("\n", start)
        found = repr(text[offset:] if line_end == -1 else text[offset:line_end])
    return ParseError(
        offset=offset, line=line, column=column, expected=failure.expected, found=found
    )
