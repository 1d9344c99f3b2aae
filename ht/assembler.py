"""ht assembler - compose parsed pieces into one outbound request."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import requests
from requests.structures import CaseInsensitiveDict

from ht import __version__
from ht.auth import Auth
from ht.body import Body, FilePart, FormBody, JsonBody, MultipartBody, RawBody
from ht.errors import ReadError, TransportError
from ht.items import RequestItems
from ht.url import Url

ACCEPT_ANY = "*/*"
ACCEPT_JSON = "application/json, */*"
CONTENT_TYPE_JSON = "application/json"


def default_headers(host: str) -> CaseInsensitiveDict:
    """Headers every request starts with. Any of them can be overridden or unset."""
    return CaseInsensitiveDict(
        [
            ("User-Agent", f"ht/{__version__}"),
            ("Accept", ACCEPT_ANY),
            ("Accept-Encoding", "gzip, deflate"),
            ("Connection", "keep-alive"),
            ("Host", host),
        ],
    )


def infer_method(method: str | None, body: Body | None) -> str:
    """POST when there is something to send, GET otherwise."""
    if method:
        return method.upper()
    return "POST" if body is not None else "GET"


@dataclass(frozen=True)
class OutboundRequest:
    method: str
    url: str
    query: list[tuple[str, str]] = field(default_factory=list)
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    headers_to_remove: frozenset[str] = frozenset()
    body: Body | None = None
    auth: Auth | None = None

    def prepare(self) -> requests.PreparedRequest:
        """Encode into a requests.PreparedRequest without sending it.

        The body is encoded by requests (JSON, urlencoded form, multipart),
        which also supplies Content-Type where the headers do not. Headers
        marked for removal are stripped last, so they also cancel defaults
        and anything requests added.
        """
        kwargs: dict[str, Any] = {
            "method": self.method,
            "url": self.url,
            "headers": dict(self.headers),
            "params": list(self.query),
        }
        opened: list[Any] = []
        try:
            body = self.body
            if isinstance(body, JsonBody):
                kwargs["json"] = body.data
            elif isinstance(body, FormBody):
                kwargs["data"] = list(body.fields)
            elif isinstance(body, MultipartBody):
                kwargs["files"] = _multipart_files(body, opened)
            elif isinstance(body, RawBody):
                kwargs["data"] = body.text.encode("utf-8")

            try:
                prepared = requests.Request(**kwargs).prepare()
            except requests.exceptions.RequestException as e:
                raise TransportError(f"Failed to build request: {e}") from e
        finally:
            for fh in opened:
                fh.close()

        for name in self.headers_to_remove:
            prepared.headers.pop(name, None)
        return prepared


def _multipart_files(body: MultipartBody, opened: list[Any]) -> list[tuple[str, tuple]]:
    """Build the requests `files` list, keeping text and file parts in order.

    Text parts use a None filename so they are sent as plain form fields.
    """
    files: list[tuple[str, tuple]] = []
    for key, value in body.parts:
        if isinstance(value, FilePart):
            path = Path(value.path).expanduser()
            try:
                fh = open(path, "rb")  # noqa: SIM115
            except OSError as e:
                raise ReadError(f"Cannot read file '{value.path}': {e.strerror or e}") from e
            opened.append(fh)
            mime = mimetypes.guess_type(str(path))[0] or "application/octet-stream"
            files.append((key, (path.name, fh, mime)))
        else:
            files.append((key, (None, value)))
    return files


def assemble(
    method: str,
    url: Url,
    items: RequestItems,
    body: Body | None = None,
    auth: Auth | None = None,
    base_headers: dict[str, str] | None = None,
) -> OutboundRequest:
    """Combine everything into one OutboundRequest.

    Header precedence, lowest first: defaults (User-Agent, Accept, Accept-Encoding,
    Connection, Host), body-driven Accept/Content-Type, config headers,
    Authorization, request item headers. Unset items are recorded and
    applied in OutboundRequest.prepare().
    """
    headers = default_headers(url.host)
    if isinstance(body, JsonBody | RawBody):
        headers["Accept"] = ACCEPT_JSON
    if isinstance(body, RawBody):
        headers["Content-Type"] = CONTENT_TYPE_JSON
    headers.update(base_headers or {})
    if auth is not None:
        headers["Authorization"] = auth.header_value()

    item_headers, to_unset = items.headers()
    headers.update(item_headers)

    return OutboundRequest(
        method=method.upper(),
        url=url.url,
        query=items.query(),
        headers=headers,
        headers_to_remove=to_unset,
        body=body,
        auth=auth,
    )
