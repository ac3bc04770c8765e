"""
Payload store — persists decoded file/image bytes and hands back a reference.
"""

import asyncio
import logging
from pathlib import Path
from typing import Protocol, Union

from lan_bridge.errors import StoreWriteError

logger = logging.getLogger("lan_bridge.store")

DEFAULT_UPLOAD_DIR = "uploads"
DEFAULT_URL_PREFIX = "/uploads"


class PayloadStore(Protocol):
    async def persist(self, name: str, data: bytes) -> str:
        """Store `data` under `name` and return an addressable reference."""
        ...


class DirectoryPayloadStore:
    """Writes each payload to its own file; references are URL paths the hub serves."""

    def __init__(self, directory: Union[str, Path] = DEFAULT_UPLOAD_DIR, url_prefix: str = DEFAULT_URL_PREFIX):
        self._directory = Path(directory)
        self._url_prefix = url_prefix.rstrip("/")
        self._directory.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def url_prefix(self) -> str:
        return self._url_prefix

    async def persist(self, name: str, data: bytes) -> str:
        if not name or Path(name).name != name or name in (".", ".."):
            raise StoreWriteError(f"Refusing to store under name {name!r}")
        path = self._directory / name
        try:
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise StoreWriteError(details={"path": str(path)}) from e
        logger.info(f"Stored {len(data)} bytes at {path}")
        return f"{self._url_prefix}/{name}"
