"""HTTP response model, builders and serializer."""

from __future__ import annotations

import html
import posixpath
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from urllib.parse import quote, unquote

from config import LISTING_DATE_FORMAT
from resolver import DirectoryListing, RegularFile

REASON_PHRASES: dict[int, str] = {
    200: "OK",
    404: "Not Found",
    501: "Not Implemented",
}


@dataclass(slots=True)
class PreparedResponse:
    head: bytes
    body: bytes = b""
    file_path: Path | None = None
    file_size: int = 0


@dataclass(slots=True)
class HTTPResponse:
    """A response whose headers are written exactly as given.

    Set either ``body`` or ``file_path``; file responses carry ``file_size``
    so the byte count advertised in ``Content-Length`` is fixed up front.
    """

    status_code: int
    reason_phrase: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | str = b""
    file_path: Path | None = None
    file_size: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.body, str):
            self.body = self.body.encode("utf-8")
        if self.file_path is not None and self.body:
            raise ValueError("Response cannot set both body and file_path")

    @property
    def status_line(self) -> str:
        reason = self.reason_phrase or REASON_PHRASES.get(self.status_code, "Unknown")
        return f"HTTP/1.1 {self.status_code} {reason}"


def prepare_response(response: HTTPResponse) -> PreparedResponse:
    header_lines = [response.status_line]
    header_lines.extend(f"{key}: {value}" for key, value in response.headers.items())
    head = ("\r\n".join(header_lines) + "\r\n\r\n").encode("utf-8")
    return PreparedResponse(
        head=head,
        body=bytes(response.body),
        file_path=response.file_path,
        file_size=response.file_size,
    )


def _quote_filename(name: str) -> str:
    return name.replace("\\", "\\\\").replace('"', '\\"')


def file_response(resource: RegularFile) -> HTTPResponse:
    """200 response that streams ``resource`` as a download attachment."""
    return HTTPResponse(
        status_code=200,
        headers={
            "Content-Type": resource.mime_type,
            "Content-Disposition": f'attachment; filename="{_quote_filename(resource.path.name)}"',
            "Content-Length": str(resource.size),
            "Connection": "close",
        },
        file_path=resource.path,
        file_size=resource.size,
    )


def format_timestamp(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp).strftime(LISTING_DATE_FORMAT)


def render_directory_listing(listing: DirectoryListing, request_path: str) -> str:
    decoded_path = unquote(request_path)
    base_path = decoded_path if decoded_path.startswith("/") else f"/{decoded_path}"
    parts = [
        "<html><head><title>Directory Listing</title></head><body>",
        "<h1>Directory Listing</h1>",
        "<ul>",
    ]
    for entry in listing.entries:
        href = quote(posixpath.join(base_path, entry.name))
        parts.append(
            f'<li><a href="{html.escape(href)}">{html.escape(entry.name)}</a> '
            f"(Size: {entry.size} bytes, "
            f"Last Modified: {format_timestamp(entry.last_modified)})</li>"
        )
    parts.append("</ul></body></html>")
    return "".join(parts)


def directory_listing_response(listing: DirectoryListing, request_path: str) -> HTTPResponse:
    return HTTPResponse(
        status_code=200,
        headers={"Content-Type": "text/html", "Connection": "close"},
        body=render_directory_listing(listing, request_path),
    )


def error_response(status_code: int, message: str) -> HTTPResponse:
    """Bare error framing: status line, ``Connection: close``, text body."""
    return HTTPResponse(
        status_code=status_code,
        headers={"Connection": "close"},
        body=message,
    )


def not_found_response() -> HTTPResponse:
    return error_response(404, "File Not Found")


def not_implemented_response() -> HTTPResponse:
    return error_response(501, "Not Implemented")
