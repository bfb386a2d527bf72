"""
db/storage.py — Object storage for portfolio images
====================================================

One bucket holds avatar, hero and project gallery images. An upload takes a
path and raw bytes and returns the public URL; delete takes a list of paths.
Uploads are not resumable: a failure raises StorageError and the caller
decides what to abort.

Implementations:
  RestBucket   → hosted storage API ({url}/storage/v1/object/{bucket}/{path})
  LocalBucket  → files under a local directory, served by the app at /media
"""

import abc
import logging
import random
import string
import time
from pathlib import Path

import httpx

from db.client import BackendError

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "portfolio-images"


class StorageError(BackendError):
    """Upload or delete failure on the object storage."""


def object_name(prefix: str, filename: str, unique: bool = False) -> str:
    """
    Build an object path like `avatar_1718000000000.jpg` or, with unique=True,
    `project_1718000000000_k3j9x0a1b.png`.
    """
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    stamp = int(time.time() * 1000)
    if unique:
        suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
        return f"{prefix}_{stamp}_{suffix}.{ext}"
    return f"{prefix}_{stamp}.{ext}"


class Bucket(abc.ABC):
    @abc.abstractmethod
    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store the bytes at `path` (overwriting) and return the public URL."""

    @abc.abstractmethod
    def delete(self, paths: list[str]) -> None:
        """Remove the given object paths."""

    def close(self) -> None:
        pass


class RestBucket(Bucket):
    def __init__(
        self,
        url: str,
        key: str,
        bucket: str = DEFAULT_BUCKET,
        cache_control: int = 3600,
        timeout: float = 30,
        transport: httpx.BaseTransport = None,
    ):
        if not url or not key:
            raise StorageError("Storage URL and key must both be configured")
        self.url = url.rstrip("/")
        self.bucket = bucket
        self.cache_control = cache_control
        self._http = httpx.Client(
            base_url=f"{self.url}/storage/v1",
            headers={"apikey": key, "Authorization": f"Bearer {key}"},
            timeout=timeout,
            transport=transport,
        )

    def public_url(self, path: str) -> str:
        return f"{self.url}/storage/v1/object/public/{self.bucket}/{path}"

    def upload(self, path, data, content_type):
        try:
            resp = self._http.post(
                f"/object/{self.bucket}/{path}",
                content=data,
                headers={
                    "Content-Type": content_type or "application/octet-stream",
                    "cache-control": f"max-age={self.cache_control}",
                    "x-upsert": "true",
                },
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageError(f"Upload of {path} failed: {e}") from e
        logger.info(f"Uploaded {path} ({len(data)} bytes) to bucket {self.bucket}")
        return self.public_url(path)

    def delete(self, paths):
        try:
            resp = self._http.request("DELETE", f"/object/{self.bucket}", json={"prefixes": list(paths)})
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageError(f"Delete of {', '.join(paths)} failed: {e}") from e

    def close(self):
        self._http.close()


class LocalBucket(Bucket):
    """Writes objects below `root`; public URLs are `{base_url}/{path}`."""

    def __init__(self, root: Path | str, base_url: str = "/media"):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        # Prevent path traversal
        if ".." in Path(path).parts or Path(path).is_absolute():
            raise StorageError(f"Invalid object path: {path}")
        return self.root / path

    def upload(self, path, data, content_type):
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Upload of {path} failed: {e}") from e
        logger.info(f"Stored {path} ({len(data)} bytes) in {self.root}")
        return f"{self.base_url}/{path}"

    def delete(self, paths):
        for path in paths:
            try:
                self._resolve(path).unlink(missing_ok=True)
            except OSError as e:
                raise StorageError(f"Delete of {path} failed: {e}") from e


def create_bucket(config: dict) -> Bucket:
    """
    Build the bucket client from the `storage` and `store` config sections.
    backend: rest | local  (defaults to rest when a store URL is configured)
    """
    storage = config.get("storage", {})
    store = config.get("store", {})
    backend = storage.get("backend") or ("rest" if store.get("url") else "local")

    if backend == "rest":
        return RestBucket(
            store.get("url", ""),
            store.get("key", ""),
            bucket=storage.get("bucket", DEFAULT_BUCKET),
            cache_control=storage.get("cache_control", 3600),
        )
    if backend == "local":
        return LocalBucket(storage["local_dir"])
    raise StorageError(f"Unknown storage backend '{backend}'")
