"""Configuration defaults and properties-file loader for the file server."""

from __future__ import annotations

import configparser
import logging
import re
from dataclasses import dataclass
from pathlib import Path

HOST: str = "0.0.0.0"
PORT: int = 8080
ROOT_DIRECTORY: str = ""
CONFIG_FILE_NAME: str = "config.properties"
INDEX_FILE_NAME: str = "index.html"
LISTING_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"
WRITE_CHUNK_SIZE: int = 64 * 1024
MAX_REQUEST_LINE_BYTES: int = 8192
LISTEN_BACKLOG: int = 128
ACCEPT_POLL_SECS: float = 0.2
LOG_FORMAT: str = "plain"

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / CONFIG_FILE_NAME

_SECTION = "server"
_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)")
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when a configuration value cannot be used to start the server."""


@dataclass(frozen=True, slots=True)
class ServerConfig:
    host: str = HOST
    port: int = PORT
    root_directory: str = ROOT_DIRECTORY


def parse_port(raw_value: str) -> int:
    try:
        port = int(raw_value.strip())
    except ValueError as exc:
        raise ConfigError(f"Invalid port value: {raw_value!r}") from exc
    if not 0 <= port <= 65535:
        raise ConfigError(f"Port out of range: {port}")
    return port


def _replace_escape(match: re.Match[str]) -> str:
    token = match.group(1)
    if len(token) == 5:
        return chr(int(token[1:], 16))
    return _ESCAPES.get(token, token)


def unescape(value: str) -> str:
    return _ESCAPE_RE.sub(_replace_escape, value)


def load_config(path: str | Path | None = None) -> ServerConfig:
    """Load server settings from a properties file, defaulting what is missing.

    Follows properties conventions: the last of duplicate keys wins and
    backslash escapes (``\\\\``, ``\\t``, ``\\uXXXX``, ...) are unescaped.
    Line continuations with a trailing backslash are not supported.

    Unreadable or unparseable files fall back to defaults with a warning.
    A present but invalid ``port`` raises ConfigError.
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning("Configuration file %s not found. Using default values.", config_path)
        return ServerConfig()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning(
            "Error loading configuration file %s (%s). Using default values.",
            config_path,
            exc,
        )
        return ServerConfig()

    parser = configparser.ConfigParser(
        interpolation=None,
        comment_prefixes=("#", "!"),
        delimiters=("=", ":"),
        strict=False,
    )
    # Keys are case-sensitive in properties files.
    parser.optionxform = str
    try:
        parser.read_string(f"[{_SECTION}]\n{text}", source=str(config_path))
    except configparser.Error as exc:
        logger.warning(
            "Malformed configuration file %s (%s). Using default values.",
            config_path,
            exc,
        )
        return ServerConfig()

    values = {key: unescape(value) for key, value in parser[_SECTION].items()}
    port = PORT
    if "port" in values:
        port = parse_port(values["port"])

    return ServerConfig(
        host=values.get("host", HOST).strip() or HOST,
        port=port,
        root_directory=values.get("rootDirectory", ROOT_DIRECTORY),
    )
