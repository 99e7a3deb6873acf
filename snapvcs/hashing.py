"""Content addressing for blobs and commits."""

import hashlib
import json
from typing import Iterable, Mapping


def blob_hash(data: bytes) -> str:
    """SHA-1 hex digest of a blob's bytes."""
    return hashlib.sha1(data).hexdigest()


def commit_id(
    message: str,
    timestamp: float,
    parents: Iterable[str],
    files: Mapping[str, str],
) -> str:
    """Compute a content-addressable commit id.

    Hashes the message, timestamp, ordered parent ids and the file table
    (sorted by path) to a 40-hex-char SHA-1 digest.
    """
    h = hashlib.sha1()
    h.update(json.dumps(message).encode())
    h.update(json.dumps(float(timestamp)).encode())
    h.update(json.dumps(list(parents), separators=(",", ":")).encode())
    h.update(json.dumps(sorted(files.items()), separators=(",", ":")).encode())
    return h.hexdigest()
