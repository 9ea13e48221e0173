"""Disk storage for protein structure files."""

from __future__ import annotations

import hashlib
import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

ALLOWED_FILE_TYPES = {"pdb", "cif"}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class StoredFile:
    path: Path
    size: int
    checksum: str


def sha256_hex(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


def safe_file_name(name: str) -> str:
    """Strip directories and anything outside [A-Za-z0-9._-] from a client-supplied name."""
    cleaned = _UNSAFE_CHARS.sub("_", Path(name).name).strip("._")
    return cleaned or "structure"


def save_upload(content: bytes, original_name: str, storage_dir: str | Path) -> StoredFile:
    """Write an uploaded file under a unique name so concurrent uploads never collide."""
    directory = Path(storage_dir)
    directory.mkdir(parents=True, exist_ok=True)

    path = directory / f"{uuid.uuid4().hex}_{safe_file_name(original_name)}"
    path.write_bytes(content)
    logger.info("Stored structure file %s (%d bytes)", path.name, len(content))
    return StoredFile(path=path, size=len(content), checksum=sha256_hex(content))
