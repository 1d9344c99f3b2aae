"""ht executor - send a prepared request and stream downloads."""

import re
from pathlib import Path
from urllib.parse import unquote, urlsplit

import click
import requests

from ht.errors import TransportError, WriteError

CHUNK_SIZE = 64 * 1024

_FILENAME_RE = re.compile(r"""filename\*?=(?:UTF-8'')?["']?([^"';]+)["']?""", re.IGNORECASE)


def send_request(
    prepared: requests.PreparedRequest,
    timeout: int = 30,
    session: requests.Session | None = None,
) -> requests.Response:
    """Send a prepared request, following redirects.

    The response is streamed: the caller either drains it for display or
    writes it to a file, and must close it either way.
 A session created here is closed before returning; the checked-out
    connection stays readable until the response is closed.

    Raises TransportError for timeouts, connection failures and any other
    requests error. HTTP error statuses are returned, not raised.
    """
    if session is not None:
        return _send(session, prepared, timeout)
    with requests.Session() as session:
        return _send(session, prepared, timeout)


def _send(session, prepared, timeout):
    try:
        return session.send(
            prepared,
            stream=True,
            timeout=timeout,
            allow_redirects=True,
        )
    except requests.exceptions.Timeout as e:
        raise TransportError(f"Request timed out after {timeout}s") from e
    except requests.exceptions.ConnectionError as e:
        raise TransportError(f"Connection error: {e}") from e
    except requests.exceptions.RequestException as e:
        raise TransportError(f"Request failed: {e}") from e
    except UnicodeEncodeError as e:
        raise TransportError(f"Cannot encode request: {e}") from e


def filename_from_response(response: requests.Response) -> str:
    """Pick a download filename.

    Content-Disposition filename first, then the last URL path segment,
    then "index".
    """
    disposition = response.headers.get("Content-Disposition", "")
    m = _FILENAME_RE.search(disposition)
    if m:
        name = Path(unquote(m.group(1).strip())).name
        if name:
            return name

    path = urlsplit(response.url or "").path
    name = Path(unquote(path)).name
    return name or "index"


def unique_path(path: Path) -> Path:
    """Return path, or path with a -N suffix if it already exists."""
    if not path.exists():
        return path
    n = 1
    while True:
        candidate = path.with_name(f"{path.stem}-{n}{path.suffix}")
        if not candidate.exists():
            return candidate
        n += 1


def download_file(response: requests.Response, output: str | None = None) -> Path:
    """Stream the response body to a file and return its path.

    An explicit output path is overwritten. A name derived from the response
    never clobbers an existing file.
    """
    if output:
        path = Path(output)
    else:
        path = unique_path(Path(filename_from_response(response)))

    total = response.headers.get("Content-Length")
    length = int(total) if total and total.isdigit() else None

    chunks = response.iter_content(chunk_size=CHUNK_SIZE)
    try:
        with open(path, "wb") as f:
            if length is None:
                for chunk in chunks:
                    f.write(chunk)
            else:
                with click.progressbar(
                    length=length,
                    label=f"Downloading to {path}",
                    file=click.get_text_stream("stderr"),
                ) as bar:
                    for chunk in chunks:
                        f.write(chunk)
                        bar.update(len(chunk))
    # requests exceptions subclass OSError, so they must be caught first
    except requests.exceptions.RequestException as e:
        raise TransportError(f"Download failed: {e}") from e
    except OSError as e:
        raise WriteError(f"Cannot write '{path}': {e.strerror or e}") from e
    return path
