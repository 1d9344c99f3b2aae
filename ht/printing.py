"""ht printing - what to show, and how to render it."""

from __future__ import annotations

import json
from dataclasses import dataclass
from urllib.parse import urlsplit

import click
import requests

from ht.errors import DecodeError, TransportError

PRETTY_ALL = "all"
PRETTY_COLORS = "colors"
PRETTY_FORMAT = "format"
PRETTY_NONE = "none"
PRETTY_CHOICES = (PRETTY_ALL, PRETTY_COLORS, PRETTY_FORMAT, PRETTY_NONE)

BINARY_NOTE = "+-----------------------------------------+\n| NOTE: binary data not shown in terminal |\n+-----------------------------------------+"

_HTTP_VERSIONS = {10: "HTTP/1.0", 11: "HTTP/1.1", 20: "HTTP/2"}

_TEXT_TYPES = (
    "text/",
    "application/json",
    "application/xml",
    "application/javascript",
    "application/ecmascript",
    "application/x-www-form-urlencoded",
)


@dataclass(frozen=True)
class PrintPolicy:
    request_headers: bool = False
    request_body: bool = False
    response_headers: bool = False
    response_body: bool = False

    @classmethod
    def parse(cls, value: str) -> PrintPolicy:
        """Parse a --print value: H/B request headers/body, h/b response headers/body."""
        unknown = set(value) - set("HBhb")
        if unknown:
            raise ValueError(
                f"unknown characters {''.join(sorted(unknown))!r}, expected any of H, B, h, b",
            )
        return cls(
            request_headers="H" in value,
            request_body="B" in value,
            response_headers="h" in value,
            response_body="b" in value,
        )


class PrintPolicyType(click.ParamType):
    name = "print"

    def convert(self, value, param, ctx):
        if isinstance(value, PrintPolicy):
            return value
        try:
            return PrintPolicy.parse(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


def resolve_print_policy(
    explicit: PrintPolicy | None,
    verbose: bool,
    stdout_is_tty: bool,
) -> PrintPolicy:
    """Explicit --print wins, then --verbose, then terminal vs. pipe defaults."""
    if explicit is not None:
        return explicit
    if verbose:
        return PrintPolicy(True, True, True, True)
    if stdout_is_tty:
        return PrintPolicy(response_headers=True, response_body=True)
    return PrintPolicy(response_body=True)


def is_binary(content: bytes, content_type: str = "") -> bool:
    if b"\0" in content:
        return True
    ct = content_type.lower().split(";")[0].strip()
    if not ct or ct.endswith("+json"):
        return False
    return not any(ct.startswith(t) for t in _TEXT_TYPES)


class Printer:
    """Render request and response parts to stdout."""

    def __init__(self, pretty: str = PRETTY_NONE):
        self.pretty = pretty
        self.colors = pretty in (PRETTY_ALL, PRETTY_COLORS)
        self.format = pretty in (PRETTY_ALL, PRETTY_FORMAT)

    def _style_headers(self, start_line: str, headers) -> str:
        if self.colors:
            start_line = click.style(start_line, fg="cyan", bold=True)
        lines = [start_line]
        for name, value in headers.items():
            label = click.style(name, fg="blue") if self.colors else name
            lines.append(f"{label}: {value}")
        return "\n".join(lines)

    def _format_body(self, text: str, content_type: str) -> str:
        if self.format and "json" in content_type.lower():
            try:
                return json.dumps(json.loads(text), indent=4, ensure_ascii=False)
            except ValueError:
                return text
        return text

    def print_request_headers(self, request: requests.PreparedRequest) -> None:
        parts = urlsplit(request.url)
        target = parts.path or "/"
        if parts.query:
            target = f"{target}?{parts.query}"
        click.echo(self._style_headers(f"{request.method} {target} HTTP/1.1", request.headers))
        click.echo()

    def print_request_body(self, request: requests.PreparedRequest) -> None:
        body = request.body
        if not body:
            return
        content_type = request.headers.get("Content-Type", "")
        if isinstance(body, bytes):
            if b"\0" in body:
                click.echo(BINARY_NOTE)
                click.echo()
                return
            try:
                body = body.decode("utf-8")
            except UnicodeDecodeError:
                click.echo(BINARY_NOTE)
                click.echo()
                return
        click.echo(self._format_body(body, content_type))
        click.echo()

    def print_response_headers(self, response: requests.Response) -> None:
        version = _HTTP_VERSIONS.get(getattr(response.raw, "version", 11), "HTTP/1.1")
        status_line = f"{version} {response.status_code} {response.reason or ''}".rstrip()
        click.echo(self._style_headers(status_line, response.headers))
        click.echo()

    def print_response_body(self, response: requests.Response) -> None:
        """Drain and print the response body.

        Binary bodies are replaced by a note. A text body that does not
        decode with the response encoding raises DecodeError.
        """
        try:
            content = response.content
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Failed to read response body: {e}") from e
        if not content:
            return
        content_type = response.headers.get("Content-Type", "")
        if is_binary(content, content_type):
            click.echo(BINARY_NOTE)
            return
        encoding = response.encoding or "utf-8"
        try:
            text = content.decode(encoding)
        except (UnicodeDecodeError, LookupError) as e:
            raise DecodeError(f"Cannot decode response body as {encoding}: {e}") from e
        click.echo(self._format_body(text, content_type))
