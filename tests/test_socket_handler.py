"""Unit tests for socket read/write helpers."""

import socket
from pathlib import Path

import pytest

from resolver import RegularFile
from response import file_response, not_found_response
from socket_handler import (
    FileTruncatedError,
    RequestLineTooLongError,
    read_request_line,
    write_http_response_message,
)


def _read_all(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = sock.recv(65536)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


def test_read_request_line_stops_at_newline() -> None:
    server_side, client_side = socket.socketpair()
    with server_side, client_side:
        client_side.sendall(b"GET /a.txt HTTP/1.1\r\nHost: localhost\r\n\r\n")

        assert read_request_line(server_side) == b"GET /a.txt HTTP/1.1\r\n"


def test_read_request_line_returns_none_on_immediate_close() -> None:
    server_side, client_side = socket.socketpair()
    with server_side:
        client_side.close()

        assert read_request_line(server_side) is None


def test_read_request_line_returns_partial_line_on_close() -> None:
    server_side, client_side = socket.socketpair()
    with server_side:
        client_side.sendall(b"GET /partial")
        client_side.close()

        assert read_request_line(server_side) == b"GET /partial"


def test_read_request_line_rejects_oversized_line() -> None:
    server_side, client_side = socket.socketpair()
    with server_side, client_side:
        client_side.sendall(b"G" * 64)

        with pytest.raises(RequestLineTooLongError):
            read_request_line(server_side, max_bytes=16)


def test_write_file_response_streams_exact_length(tmp_path: Path) -> None:
    payload = bytes(range(256)) * 40
    file_path = tmp_path / "data.bin"
    file_path.write_bytes(payload)
    response = file_response(
        RegularFile(path=file_path, size=len(payload), mime_type="application/octet-stream")
    )

    server_side, client_side = socket.socketpair()
    with client_side:
        with server_side:
            bytes_sent = write_http_response_message(server_side, response, write_chunk_size=1000)
        raw = _read_all(client_side)

    head, body = raw.split(b"\r\n\r\n", 1)
    assert body == payload
    assert f"Content-Length: {len(payload)}".encode() in head
    assert bytes_sent == len(raw)


def test_write_file_response_fails_when_file_shrinks(tmp_path: Path) -> None:
    file_path = tmp_path / "short.bin"
    file_path.write_bytes(b"abc")
    response = file_response(
        RegularFile(path=file_path, size=10, mime_type="application/octet-stream")
    )

    server_side, client_side = socket.socketpair()
    with server_side, client_side:
        with pytest.raises(FileTruncatedError):
            write_http_response_message(server_side, response)


def test_write_body_response() -> None:
    server_side, client_side = socket.socketpair()
    with client_side:
        with server_side:
            write_http_response_message(server_side, not_found_response())
        raw = _read_all(client_side)

    assert raw == b"HTTP/1.1 404 Not Found\r\nConnection: close\r\n\r\nFile Not Found"
