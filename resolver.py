"""Map request paths onto files, index pages and directory listings."""

from __future__ import annotations

import mimetypes
import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote

from config import INDEX_FILE_NAME

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class RegularFile:
    path: Path
    size: int
    mime_type: str


@dataclass(frozen=True, slots=True)
class DirectoryWithIndex:
    index_file: RegularFile


@dataclass(frozen=True, slots=True)
class ListingEntry:
    name: str
    size: int
    last_modified: float


@dataclass(frozen=True, slots=True)
class DirectoryListing:
    path: Path
    entries: tuple[ListingEntry, ...]


@dataclass(frozen=True, slots=True)
class NotFound:
    pass


ResolvedResource = RegularFile | DirectoryWithIndex | DirectoryListing | NotFound


def get_content_type(file_path: Path) -> str:
    content_type, _encoding = mimetypes.guess_type(file_path.name)
    return content_type or DEFAULT_CONTENT_TYPE


def root_path(root_directory: str) -> Path:
    """Canonical root; an empty setting means the working directory."""
    return Path(root_directory or os.curdir).resolve()


def locate(root_directory: str, request_path: str) -> Path | None:
    """Join a request path under the root, or None if it escapes the root."""
    root = root_path(root_directory)
    relative = unquote(request_path).lstrip("/")
    try:
        candidate = (root / relative).resolve()
        candidate.relative_to(root)
    except (OSError, ValueError):
        return None
    return candidate


def regular_file(path: Path) -> RegularFile:
    return RegularFile(path=path, size=path.stat().st_size, mime_type=get_content_type(path))


def list_directory(directory: Path) -> DirectoryListing:
    entries = []
    for child in directory.iterdir():
        try:
            child_stat = child.stat()
        except OSError:
            # Dangling symlinks are listed with their own metadata.
            try:
                child_stat = child.lstat()
            except OSError:
                continue
        entries.append(
            ListingEntry(
                name=child.name,
                size=child_stat.st_size,
                last_modified=child_stat.st_mtime,
            )
        )
    entries.sort(key=lambda entry: entry.name)
    return DirectoryListing(path=directory, entries=tuple(entries))


def resolve(root_directory: str, request_path: str) -> ResolvedResource:
    """Resolve ``request_path`` against ``root_directory`` without side effects."""
    location = locate(root_directory, request_path)
    if location is None:
        return NotFound()
    try:
        exists = location.exists()
    except OSError:
        exists = False
    if not exists:
        return NotFound()

    if location.is_dir():
        index_path = location / INDEX_FILE_NAME
        if index_path.is_file():
            return DirectoryWithIndex(index_file=regular_file(index_path))
        return list_directory(location)

    if not location.is_file():
        return NotFound()
    return regular_file(location)
