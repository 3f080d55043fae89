"""
Source documents: externally supplied files to import.

A source is described by a locator string:

- plain path or ``file://`` URI: a direct filesystem reference (LocalDocument)
- ``http://`` or ``https://`` link: a structured share (HttpDocument)

Documents expose ``name``, ``last_modified`` and a one-shot ``open()`` stream.
Every failure to read them surfaces as ``OSError`` from ``open()``/``read()``
so the reconciler only has one low-level error type to translate.
"""

from __future__ import annotations

import io
import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable
from urllib.parse import unquote, urlsplit

import httpx

from bookdrop.exceptions import SourceUnreadable
from bookdrop.retry import retry_with_backoff

logger = logging.getLogger(__name__)

DEFAULT_HTTP_NAME = "download"
DEFAULT_HTTP_RETRIES = 2
DEFAULT_RETRY_DELAY = 1.0
_FILENAME_STAR_RE = re.compile(r"filename\*\s*=\s*[^']*'[^']*'([^;]+)", re.IGNORECASE)
_FILENAME_RE = re.compile(r'filename\s*=\s*"?([^";]+)"?', re.IGNORECASE)


@runtime_checkable
class DocumentRef(Protocol):
    """Readable document supplied by the caller."""

    @property
    def name(self) -> str: ...

    @property
    def last_modified(self) -> float: ...

    @property
    def locator(self) -> str: ...

    @property
    def is_structured_share(self) -> bool: ...

    def open(self) -> BinaryIO: ...


@dataclass(frozen=True)
class LocalDocument:
    """Document referenced directly by a filesystem path."""

    path: Path

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def last_modified(self) -> float:
        return self.path.stat().st_mtime

    @property
    def locator(self) -> str:
        return self.path.as_uri()

    @property
    def is_structured_share(self) -> bool:
        return False

    def open(self) -> BinaryIO:
        return open(self.path, "rb")


class _ResponseStream(io.RawIOBase):
    """Readable raw stream over a streaming httpx response."""

    def __init__(self, response: httpx.Response, stack: Iterator[httpx.Response]) -> None:
        self._response = response
        self._chunks = response.iter_bytes()
        self._pending = b""
        self._stack = stack

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray | memoryview) -> int:  # type: ignore[override]
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
            except httpx.HTTPError as e:
                raise OSError(f"Transfer interrupted: {e}") from e
        n = min(len(buffer), len(self._pending))
        buffer[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        return n

    def close(self) -> None:
        if not self.closed:
            try:
                self._response.close()
            finally:
                # Exhaust the generator so the stream context is released
                next(self._stack, None)
        super().close()


@dataclass(frozen=True)
class HttpDocument:
    """Document shared as an http(s) link.

    Metadata comes from a HEAD request made by ``fetch_http_document``; the
    body is streamed by ``open()``.
    """

    url: str
    name: str
    last_modified: float
    client: httpx.Client = field(repr=False, compare=False)

    @property
    def locator(self) -> str:
        return self.url

    @property
    def is_structured_share(self) -> bool:
        return True

    def open(self) -> BinaryIO:
        stack = self._stream()
        try:
            response = next(stack)
        except httpx.HTTPError as e:
            raise OSError(f"Cannot fetch {self.url}: {e}") from e
        return io.BufferedReader(_ResponseStream(response, stack))  # type: ignore[return-value]

    def _stream(self) -> Iterator[httpx.Response]:
        with self.client.stream("GET", self.url, follow_redirects=True) as response:
            response.raise_for_status()
            yield response


def filename_from_content_disposition(header: str | None) -> str | None:
    """Extract the filename from a Content-Disposition header."""
    if not header:
        return None
    match = _FILENAME_STAR_RE.search(header)
    if match:
        return unquote(match.group(1).strip())
    match = _FILENAME_RE.search(header)
    if match:
        return match.group(1).strip()
    return None


def parse_http_date(value: str | None) -> float:
    """Parse a Last-Modified header into a timestamp (0.0 when unknown)."""
    if not value:
        return 0.0
    try:
        return parsedate_to_datetime(value).timestamp()
    except (TypeError, ValueError):
        logger.debug("Unparseable Last-Modified header: %r", value)
        return 0.0


def fetch_http_document(
    url: str,
    client: httpx.Client,
    *,
    retries: int = DEFAULT_HTTP_RETRIES,
    retry_delay: float = DEFAULT_RETRY_DELAY,
) -> HttpDocument:
    """Resolve an http(s) link into an HttpDocument using a HEAD request.

    Transient transport errors are retried ``retries`` times with backoff.

    Raises:
        SourceUnreadable: If the server cannot be reached or answers with an error
    """
    head = retry_with_backoff(
        max_attempts=retries + 1,
        base_delay=retry_delay,
        jitter=retry_delay,
    )(client.head)
    try:
        response = head(url, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise SourceUnreadable(f"Cannot reach shared link: {e}", source=url) from e

    name = filename_from_content_disposition(response.headers.get("content-disposition"))
    if not name:
        name = unquote(urlsplit(str(response.url)).path.rstrip("/").rsplit("/", 1)[-1])
    last_modified = parse_http_date(response.headers.get("last-modified"))
    logger.debug("Shared link %s -> name=%r last_modified=%s", url, name, last_modified)

    return HttpDocument(
        url=url,
        name=name or DEFAULT_HTTP_NAME,
        last_modified=last_modified,
        client=client,
    )


def open_document(
    locator: str,
    client: httpx.Client | None = None,
    *,
    retries: int = DEFAULT_HTTP_RETRIES,
    retry_delay: float = DEFAULT_RETRY_DELAY,
) -> DocumentRef:
    """Resolve a source locator into a DocumentRef.

    Args:
        locator: Path, ``file://`` URI or ``http(s)://`` link
        client: HTTP client for shared links (required for http(s) locators)
        retries: Extra attempts for the shared-link HEAD request
        retry_delay: Initial backoff between those attempts, in seconds

    Raises:
        SourceUnreadable: If the locator is unsupported or the document is missing
    """
    parts = urlsplit(locator)
    scheme = parts.scheme.lower()

    if scheme in ("http", "https"):
        if client is None:
            raise SourceUnreadable("No HTTP client available for shared link", source=locator)
        return fetch_http_document(locator, client, retries=retries, retry_delay=retry_delay)

    if scheme == "file":
        path = Path(unquote(parts.path))
    elif scheme == "" or len(scheme) == 1:  # Windows drive letters parse as a scheme
        path = Path(locator).expanduser()
    else:
        raise SourceUnreadable(f"Unsupported source scheme: {scheme}://", source=locator)

    if not path.is_file():
        raise SourceUnreadable(f"Source file not found: {path}", source=locator)
    return LocalDocument(path.resolve())


@contextmanager
def http_client(timeout: float, user_agent: str) -> Iterator[httpx.Client]:
    """HTTP client configured for fetching shared links."""
    with httpx.Client(timeout=timeout, headers={"User-Agent": user_agent}) as client:
        yield client
