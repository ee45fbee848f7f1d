"""Object storage capability for receipts, progress photos and invoices."""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import urlencode

from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

POINTER_PREFIX = "storage:"


class ObjectStore(Protocol):
    def upload(
        self, bucket: str, path: str, data: bytes, *, content_type: str | None = None
    ) -> None:
        """Store ``data`` at ``bucket/path``; existing objects are not overwritten."""
        ...

    def signed_url(self, bucket: str, path: str, *, expires_in: int = 60) -> str:
        """Return a time-limited URL for ``bucket/path``."""
        ...


class ObjectExistsError(FileExistsError):
    pass


class LocalObjectStore:
    """Filesystem-backed store; URLs are HMAC-signed and served by the files blueprint."""

    def __init__(self, root: Path, secret_key: str, *, url_prefix: str = "/files"):
        self.root = Path(root)
        self._secret = secret_key.encode("utf-8")
        self.url_prefix = url_prefix.rstrip("/")

    def _resolve(self, bucket: str, path: str) -> Path:
        base = (self.root / bucket).resolve()
        target = (base / path).resolve()
        if base != target and base not in target.parents:
            raise ValueError(f"Object path escapes bucket: {path!r}")
        return target

    def upload(
        self, bucket: str, path: str, data: bytes, *, content_type: str | None = None
    ) -> None:
        target = self._resolve(bucket, path)
        if target.exists():
            raise ObjectExistsError(f"{bucket}/{path} already exists")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info(
            "Stored object",
            extra={"bucket": bucket, "path": path, "size": len(data), "content_type": content_type},
        )

    def _signature(self, bucket: str, path: str, expires: int) -> str:
        message = f"{bucket}/{path}:{expires}".encode("utf-8")
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def signed_url(self, bucket: str, path: str, *, expires_in: int = 60) -> str:
        expires = int(time.time()) + expires_in
        query = urlencode({"expires": expires, "signature": self._signature(bucket, path, expires)})
        return f"{self.url_prefix}/{bucket}/{path}?{query}"

    def open_signed(
        self, bucket: str, path: str, *, expires: int, signature: str
    ) -> Optional[Path]:
        """Return the object's file when the signature is valid and unexpired."""

        if expires < int(time.time()):
            return None
        expected = self._signature(bucket, path, expires)
        if not hmac.compare_digest(expected, signature):
            return None
        target = self._resolve(bucket, path)
        return target if target.is_file() else None


def make_pointer(bucket: str, path: str) -> str:
    return f"{POINTER_PREFIX}{bucket}/{path}"


def parse_pointer(link: str | None) -> Optional[tuple[str, str]]:
    """Split ``storage:<bucket>/<path>`` into its parts; ``None`` for other links."""

    if not link or not link.startswith(POINTER_PREFIX):
        return None
    bucket, _, path = link[len(POINTER_PREFIX):].partition("/")
    if not bucket or not path:
        return None
    return bucket, path


def resolve_link(link: str | None, store: ObjectStore, *, expires_in: int = 60) -> Optional[str]:
    """Turn a storage pointer into a signed URL; any other link passes through."""

    if not link:
        return None
    pointer = parse_pointer(link)
    if pointer is None:
        return link
    return store.signed_url(pointer[0], pointer[1], expires_in=expires_in)


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def safe_name(filename: str) -> str:
    return secure_filename(filename) or "upload"


def receipt_object_path(entry_id: int, filename: str, *, timestamp: int | None = None) -> str:
    stamp = timestamp if timestamp is not None else _timestamp_ms()
    return f"{stamp}_{entry_id}_{safe_name(filename)}"


def photo_object_path(
    property_id: int, filename: str, *, invoice: bool = False, timestamp: int | None = None
) -> str:
    stamp = timestamp if timestamp is not None else _timestamp_ms()
    prefix = "invoice_" if invoice else ""
    return f"{property_id}/{prefix}{stamp}_{safe_name(filename)}"
