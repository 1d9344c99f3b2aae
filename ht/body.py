"""ht body - turn body items or piped stdin into exactly one request body."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TextIO, Union

from ht.errors import ConflictError, FieldTypeError, ReadError
from ht.items import BodyItem, DataField, FileField, JsonField


@dataclass(frozen=True)
class RawBody:
    text: str


@dataclass(frozen=True)
class FormBody:
    fields: list[tuple[str, str]] = field(default_factory=list)


@dataclass(frozen=True)
class FilePart:
    """A file attachment, opened only when the request is prepared."""

    path: str


@dataclass(frozen=True)
class MultipartBody:
    parts: list[tuple[str, str | FilePart]] = field(default_factory=list)


@dataclass(frozen=True)
class JsonBody:
    data: dict[str, Any] = field(default_factory=dict)


Body = Union[RawBody, FormBody, MultipartBody, JsonBody]


def build_body(
    items: list[BodyItem],
    form: bool = False,
    multipart: bool = False,
) -> Body | None:
    """Build a body from data, JSON and file items.

    - multipart: data fields become text parts, file fields file parts
    - form: data fields only, every entry kept in order
    - default: a JSON object; data values are strings, := values keep their type

    Returns None when there are no body items.
    """
    if not items:
        return None

    if multipart:
        parts: list[tuple[str, str | FilePart]] = []
        for item in items:
            if isinstance(item, DataField):
                parts.append((item.key, item.value))
            elif isinstance(item, FileField):
                parts.append((item.key, FilePart(item.path)))
            else:
                raise FieldTypeError(
                    f"JSON field '{item.key}' cannot be sent as multipart; use '{item.key}=value'",
                )
        return MultipartBody(parts)

    if form:
        fields: list[tuple[str, str]] = []
        for item in items:
            if isinstance(item, DataField):
                fields.append((item.key, item.value))
            elif isinstance(item, FileField):
                raise FieldTypeError(
                    f"File field '{item.key}' requires --multipart",
                )
            else:
                raise FieldTypeError(
                    f"JSON field '{item.key}' cannot be sent as a form; use '{item.key}=value'",
                )
        return FormBody(fields)

    data: dict[str, Any] = {}
    for item in items:
        if isinstance(item, DataField):
            data[item.key] = item.value
        elif isinstance(item, JsonField):
            data[item.key] = item.value
        else:
            raise FieldTypeError(
                f"File field '{item.key}' requires --multipart",
            )
    return JsonBody(data)


def body_from_stdin(stream: TextIO, ignore_stdin: bool = False) -> RawBody | None:
    """Read a piped body from stream.

    Skipped when ignore_stdin is set or the stream is an interactive terminal,
    so ht never blocks waiting for input nobody is going to type.
    """
    if ignore_stdin or stream.isatty():
        return None
    try:
        return RawBody(stream.read())
    except (OSError, UnicodeDecodeError) as e:
        raise ReadError(f"Failed to read request body from stdin: {e}") from e


def resolve_body(
    items: list[BodyItem],
    stdin_body: RawBody | None,
    form: bool = False,
    multipart: bool = False,
) -> Body | None:
    """Pick the single body source, refusing to mix stdin with body items."""
    if items and stdin_body is not None:
        raise ConflictError(
            "Request body (from stdin) and request data (key=value) cannot be mixed. "
            "Pass --ignore-stdin to skip stdin.",
        )
    if items:
        return build_body(items, form=form, multipart=multipart)
    return stdin_body
