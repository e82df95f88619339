"""Blob storage for uploaded files."""

import asyncio
import shutil
from pathlib import Path
from typing import Protocol
from urllib.parse import quote, unquote, urlparse
from uuid import uuid4

import structlog

from agnys.config import Config
from agnys.core.modules.file.utils import sanitize_filename
from agnys.errors import NotFoundError, UpstreamServiceError

logger = structlog.get_logger(__name__)

BLOBS_ROUTE = "/blobs"


class BlobStorage(Protocol):
    """Public blob store: put returns a URL, delete takes that URL back."""

    async def put(self, name: str, content: bytes) -> str: ...

    async def delete(self, url: str) -> None: ...


class LocalBlobStorage:
    """Stores blobs on the local filesystem and serves them under /blobs/{key}/{name}.

    Each upload gets its own random key directory so that equal filenames never collide.
    """

    def __init__(self, root: Path, base_url: str) -> None:
        self.root = root
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_config(cls, config: Config) -> "LocalBlobStorage":
        if not config.blob_storage_path:
            raise UpstreamServiceError("Blob storage is not configured (AGNYS_BLOB_STORAGE_PATH)")
        return cls(Path(config.blob_storage_path), config.blob_base_url)

    async def put(self, name: str, content: bytes) -> str:
        key = uuid4().hex
        filename = sanitize_filename(name)
        path = self.root / key / filename
        try:
            await asyncio.to_thread(_write_file, path, content)
        except OSError as e:
            raise UpstreamServiceError(f"Failed to write blob {path}: {e}") from e
        logger.debug("blob_stored", key=key, size=len(content))
        return f"{self.base_url}{BLOBS_ROUTE}/{key}/{quote(filename)}"

    async def delete(self, url: str) -> None:
        key, filename = self._parse_url(url)
        folder = self.root / key
        try:
            await asyncio.to_thread(_remove_folder, folder)
        except OSError as e:
            raise UpstreamServiceError(f"Failed to delete blob {folder}: {e}") from e
        logger.debug("blob_deleted", key=key, filename=filename)

    def resolve_path(self, key: str, filename: str) -> Path:
        """Map a public blob location to its file, refusing anything outside the storage root."""
        path = (self.root / key / filename).resolve()
        if not path.is_relative_to(self.root.resolve()) or not path.is_file():
            raise NotFoundError("File not found")
        return path

    def _parse_url(self, url: str) -> tuple[str, str]:
        prefix = f"{self.base_url}{BLOBS_ROUTE}/"
        if not url.startswith(prefix):
            raise UpstreamServiceError(f"Blob URL outside of storage: {url}")
        parts = unquote(urlparse(url).path).rsplit("/", 2)
        if len(parts) != 3 or not parts[1] or not parts[2]:
            raise UpstreamServiceError(f"Malformed blob URL: {url}")
        return parts[1], parts[2]


def _write_file(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


def _remove_folder(folder: Path) -> None:
    if folder.exists():
        shutil.rmtree(folder)
