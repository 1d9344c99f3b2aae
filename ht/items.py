"""ht request items - parse KEY<sep>VALUE shorthand into typed items.

Separators, leftmost match wins; at the same position the longer
token is tried first:

    Name:Value     header
    Name:          unset a header (including the defaults ht injects)
    Name;          header with an empty value
    name==value    URL query parameter
    field:=json    JSON field with a typed value (number, bool, list, ...)
    field=value    data field (JSON string, form field or multipart text part)
    field@path     file field (multipart only)
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Union

from requests.structures import CaseInsensitiveDict

from ht.errors import JsonError, ParseError

SEP_HEADER = ":"
SEP_QUERY = "=="
SEP_JSON = ":="
SEP_DATA = "="
SEP_FILE = "@"

# Alternation order matters: "==" before "=", ":=" before ":".
_ITEM_RE = re.compile(r"^(.*?)(==|:=|=|@|:)(.*)$", re.DOTALL)
_EMPTY_HEADER_RE = re.compile(r"^([^:=@;]+);$")


@dataclass(frozen=True)
class HeaderSet:
    name: str
    value: str


@dataclass(frozen=True)
class HeaderUnset:
    name: str


@dataclass(frozen=True)
class UrlParam:
    name: str
    value: str


@dataclass(frozen=True)
class DataField:
    key: str
    value: str


@dataclass(frozen=True)
class JsonField:
    key: str
    value: Any


@dataclass(frozen=True)
class FileField:
    key: str
    path: str


RequestItem = Union[HeaderSet, HeaderUnset, UrlParam, DataField, JsonField, FileField]
BodyItem = Union[DataField, JsonField, FileField]


def parse_item(raw: str) -> RequestItem:
    """Parse a single request item string.

    Only the first separator splits the item, so the value may contain
    separator characters of its own (``url==http://x?a=b``).

    Raises ParseError when no separator is present or the key is empty,
    JsonError when a ``:=`` value is not valid JSON.
    """
    m = _ITEM_RE.match(raw)
    if not m:
        empty = _EMPTY_HEADER_RE.match(raw)
        if empty:
            name = empty.group(1).strip()
            _check_header_encoding(raw, name, "")
            return HeaderSet(name, "")
        raise ParseError(
            f"Invalid request item '{raw}': expected one of "
            "'Header:Value', 'name==value', 'field=value', 'field:=json' or 'field@file'",
        )

    key, sep, value = m.groups()
    if not key.strip():
        raise ParseError(f"Invalid request item '{raw}': empty key")

    if sep == SEP_HEADER:
        name, value = key.strip(), value.strip()
        _check_header_encoding(raw, name, value)
        if not value:
            return HeaderUnset(name)
        return HeaderSet(name, value)
    if sep == SEP_QUERY:
        return UrlParam(key, value)
    if sep == SEP_FILE:
        return FileField(key, value)
    if sep == SEP_JSON:
        try:
            return JsonField(key, json.loads(value))
        except json.JSONDecodeError as e:
            raise JsonError(f"Invalid JSON in '{raw}': {e}") from e
    return DataField(key, value)


def _check_header_encoding(raw: str, name: str, value: str) -> None:
    # HTTP/1.1 headers go on the wire as latin-1
    try:
        name.encode("latin-1")
        value.encode("latin-1")
    except UnicodeEncodeError as e:
        raise ParseError(
            f"Invalid request item '{raw}': header contains characters outside latin-1",
        ) from e


class RequestItems:
    """Parsed request items, kept in the order they were given."""

    def __init__(self, items: list[RequestItem]):
        self.items = list(items)

    @classmethod
    def parse(cls, raws: tuple[str, ...] | list[str]) -> RequestItems:
        return cls([parse_item(raw) for raw in raws])

    def query(self) -> list[tuple[str, str]]:
        """Query parameters as ordered pairs. Repeated names are all kept."""
        return [(i.name, i.value) for i in self.items if isinstance(i, UrlParam)]

    def headers(self) -> tuple[CaseInsensitiveDict, frozenset[str]]:
        """Return (headers, names_to_unset).

        A later header overrides an earlier one with the same name. An unset
        drops any earlier value and marks the name for removal from the final
        request; setting the name again afterwards cancels the removal.
        """
        headers: CaseInsensitiveDict = CaseInsensitiveDict()
        to_unset: dict[str, str] = {}
        for item in self.items:
            if isinstance(item, HeaderSet):
                headers[item.name] = item.value
                to_unset.pop(item.name.lower(), None)
            elif isinstance(item, HeaderUnset):
                headers.pop(item.name, None)
                to_unset[item.name.lower()] = item.name
        return headers, frozenset(to_unset.values())

    def body_items(self) -> list[BodyItem]:
        return [i for i in self.items if isinstance(i, DataField | JsonField | FileField)]
