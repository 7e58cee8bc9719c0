"""Low-level socket read/write utilities."""

from __future__ import annotations

import os
import socket
from typing import BinaryIO

from config import MAX_REQUEST_LINE_BYTES, WRITE_CHUNK_SIZE
from response import HTTPResponse, prepare_response

READ_CHUNK_SIZE = 1024


class HTTPReadError(Exception):
    """Raised when a client request cannot be safely read from the socket."""


class RequestLineTooLongError(HTTPReadError):
    """Raised when no line terminator arrives within MAX_REQUEST_LINE_BYTES."""


class FileTruncatedError(OSError):
    """Raised when a file yields fewer bytes than its advertised length."""


def read_request_line(
    client_socket: socket.socket,
    *,
    max_bytes: int = MAX_REQUEST_LINE_BYTES,
) -> bytes | None:
    """Read bytes up to and including the first ``\\n``.

    Returns None when the peer closes before sending anything, and the
    partial line when it closes mid-line. Bytes after the line are left
    unread.
    """
    buffer = bytearray()
    while True:
        newline_index = buffer.find(b"\n")
        if newline_index != -1:
            return bytes(buffer[: newline_index + 1])
        if len(buffer) > max_bytes:
            raise RequestLineTooLongError("Request line exceeded MAX_REQUEST_LINE_BYTES")

        chunk = client_socket.recv(READ_CHUNK_SIZE)
        if not chunk:
            return bytes(buffer) if buffer else None
        buffer.extend(chunk)


def _send_file(
    client_socket: socket.socket,
    file_obj: BinaryIO,
    file_size: int,
    write_chunk_size: int,
) -> int:
    remaining = file_size
    offset = 0
    if hasattr(os, "sendfile"):
        while remaining > 0:
            sent = os.sendfile(
                client_socket.fileno(),
                file_obj.fileno(),
                offset,
                min(write_chunk_size, remaining),
            )
            if sent <= 0:
                break
            remaining -= sent
            offset += sent
    else:
        while remaining > 0:
            chunk = file_obj.read(min(write_chunk_size, remaining))
            if not chunk:
                break
            client_socket.sendall(chunk)
            remaining -= len(chunk)

    if remaining > 0:
        raise FileTruncatedError(
            f"File ended after {file_size - remaining} of {file_size} bytes"
        )
    return file_size


def write_http_response_message(
    client_socket: socket.socket,
    response: HTTPResponse,
    *,
    write_chunk_size: int = WRITE_CHUNK_SIZE,
) -> int:
    """Write an HTTPResponse, streaming file bodies in bounded chunks."""
    prepared = prepare_response(response)
    if prepared.file_path is not None:
        # Open before the head goes out so a vanished file sends nothing.
        with prepared.file_path.open("rb") as file_obj:
            client_socket.sendall(prepared.head)
            body_bytes = _send_file(
                client_socket,
                file_obj,
                prepared.file_size,
                write_chunk_size,
            )
        return len(prepared.head) + body_bytes

    client_socket.sendall(prepared.head + prepared.body)
    return len(prepared.head) + len(prepared.body)
