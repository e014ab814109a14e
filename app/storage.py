import secrets
import time
from pathlib import Path

from loguru import logger
from starlette.concurrency import run_in_threadpool

from app import settings

UPLOAD_URL_PREFIX = "/uploads"


class BlobStore:
    """
    Local-disk store for payment evidence.
    Returns a reference path under /uploads; the bytes are never inspected.
    """

    def __init__(self, root: str | Path = settings.UPLOAD_DIR):
        self.root = Path(root)

    def _name_for(self, original_filename: str | None) -> str:
        suffix = Path(original_filename).suffix if original_filename else ""
        unique = f"{time.time_ns() // 1_000_000}-{secrets.randbelow(10**9)}"
        return f"txn-{unique}{suffix}"

    def _write(self, name: str, data: bytes) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / name).write_bytes(data)

    async def save(self, data: bytes, original_filename: str | None = None) -> str:
        name = self._name_for(original_filename)
        await run_in_threadpool(self._write, name, data)
        logger.debug("Stored attachment {} ({} bytes)", name, len(data))
        return f"{UPLOAD_URL_PREFIX}/{name}"


_blob_store = BlobStore()


def get_blob_store() -> BlobStore:
    return _blob_store
