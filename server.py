"""Main HTTP server entry point and connection lifecycle orchestration."""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import socket
import threading
import time

from config import (
    ACCEPT_POLL_SECS,
    LISTEN_BACKLOG,
    LOG_FORMAT,
    ConfigError,
    ServerConfig,
    load_config,
)
from handlers.static_handlers import handle_request
from request import HTTPRequest
from response import HTTPResponse
from socket_handler import HTTPReadError, read_request_line, write_http_response_message

logger = logging.getLogger(__name__)


class HTTPServer:
    """Accepts connections and serves each one on its own thread.

    There is no worker limit and no queue: every accepted socket gets a
    fresh daemon thread and the acceptor goes straight back to ``accept``.
    """

    def __init__(
        self,
        config: ServerConfig | None = None,
        *,
        log_format: str = LOG_FORMAT,
    ) -> None:
        self.config = config or ServerConfig()
        self.host = self.config.host
        self.port = self.config.port
        self.root_directory = self.config.root_directory
        self.log_format = log_format

        self._server_socket: socket.socket | None = None
        self._next_connection_id = 0
        self._running = False

    def start(self) -> None:
        """Bind and run the accept loop until stop() or a socket failure."""
        try:
            self._serve_forever()
        except OSError as exc:
            logger.error("Error running the server on port %s: %s", self.port, exc)
            raise

    def _serve_forever(self) -> None:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server_socket:
            server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server_socket.bind((self.host, self.port))
            server_socket.listen(LISTEN_BACKLOG)
            server_socket.settimeout(ACCEPT_POLL_SECS)
            self._server_socket = server_socket
            self.port = server_socket.getsockname()[1]
            self._running = True
            logger.info(
                "Server started on %s:%s serving %r",
                self.host,
                self.port,
                self.root_directory or ".",
            )

            try:
                while self._running:
                    try:
                        client_socket, address = server_socket.accept()
                    except socket.timeout:
                        continue
                    except OSError:
                        if not self._running:
                            break
                        raise

                    self._spawn_worker(client_socket, address)
            finally:
                self._running = False
                self._server_socket = None

    def stop(self) -> None:
        self._running = False
        if self._server_socket is not None:
            self._server_socket.close()
            self._server_socket = None

    def _spawn_worker(self, client_socket: socket.socket, address: tuple[str, int]) -> None:
        self._next_connection_id += 1
        worker = threading.Thread(
            target=self._handle_client,
            args=(client_socket, address),
            name=f"http-conn-{self._next_connection_id}",
            daemon=True,
        )
        try:
            worker.start()
        except RuntimeError:
            logger.exception("Could not start worker for %s", address[0])
            client_socket.close()

    def _handle_client(self, client_socket: socket.socket, address: tuple[str, int]) -> None:
        with client_socket:
            try:
                self._serve_connection(client_socket, address)
            except Exception:
                logger.exception("Unhandled error handling client %s", address[0])

    def _serve_connection(self, client_socket: socket.socket, address: tuple[str, int]) -> None:
        client_socket.settimeout(None)
        started_at = time.perf_counter()
        try:
            raw_line = read_request_line(client_socket)
        except (HTTPReadError, OSError) as exc:
            logger.warning("Error reading request from %s: %s", address[0], exc)
            return

        if raw_line is None:
            return

        request = HTTPRequest.from_request_line(raw_line.decode("utf-8", errors="replace"))
        if request is None:
            logger.debug("Dropping malformed request line from %s: %r", address[0], raw_line)
            return

        try:
            response = self._dispatch(request)
        except OSError as exc:
            logger.warning("Error resolving %s for %s: %s", request.path, address[0], exc)
            return

        try:
            bytes_sent = write_http_response_message(client_socket, response)
        except OSError as exc:
            logger.warning("Error writing response to %s: %s", address[0], exc)
            return

        self._record_and_log(
            address=address,
            request=request,
            response=response,
            payload_size=bytes_sent,
            started_at=started_at,
        )

    def _dispatch(self, request: HTTPRequest) -> HTTPResponse:
        return handle_request(request, self.root_directory)

    def _record_and_log(
        self,
        *,
        address: tuple[str, int],
        request: HTTPRequest,
        response: HTTPResponse,
        payload_size: int,
        started_at: float,
    ) -> None:
        duration_ms = (time.perf_counter() - started_at) * 1000
        event = {
            "client": address[0],
            "method": request.method,
            "path": request.path,
            "status": response.status_code,
            "bytes_out": payload_size,
            "latency_ms": round(duration_ms, 3),
        }
        if self.log_format == "json":
            logger.info(json.dumps(event, sort_keys=True))
            return

        logger.info(
            "client=%s method=%s path=%s status=%s bytes_out=%s duration_ms=%.2f",
            event["client"],
            event["method"],
            event["path"],
            event["status"],
            event["bytes_out"],
            duration_ms,
        )


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve files and directory listings over HTTP")
    parser.add_argument("--config", default=None, help="Path to a properties file")
    parser.add_argument("--host", default=None)
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--root", dest="root_directory", default=None)
    parser.add_argument("--log-format", choices=["plain", "json"], default=LOG_FORMAT)
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ServerConfig:
    config = load_config(args.config)
    overrides = {
        name: getattr(args, name)
        for name in ("host", "port", "root_directory")
        if getattr(args, name) is not None
    }
    return dataclasses.replace(config, **overrides)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    try:
        config = build_config(args)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    server = HTTPServer(config, log_format=args.log_format)
    try:
        server.start()
    except KeyboardInterrupt:
        server.stop()
    except OSError:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
