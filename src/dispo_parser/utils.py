"""Shared helpers for hashing and timestamps."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from pathlib import Path

_CHUNK_SIZE = 64 * 1024


def sha256_file(path: Path) -> str:
    """Return the hex SHA-256 digest of *path*, or ``""`` if it cannot be read."""
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as fh:
            for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError:
        return ""
    return digest.hexdigest()


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()
