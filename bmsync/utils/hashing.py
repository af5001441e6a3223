# bmsync Hashing Utilities
# Content digests for change detection

import hashlib
from pathlib import Path

DIGEST_ALGORITHM = "sha256"


def content_hash(content: str | bytes, *, algorithm: str = DIGEST_ALGORITHM) -> str:
    """
    Calculate hash of content.

    Args:
        content: String or bytes content. Strings are UTF-8 encoded first.
        algorithm: Hash algorithm (default sha256).

    Returns:
        Hex digest of hash.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    hasher = hashlib.new(algorithm)
    hasher.update(content)
    return hasher.hexdigest()


def file_hash(path: Path, *, algorithm: str = DIGEST_ALGORITHM, chunk_size: int = 8192) -> str:
    """
    Calculate hash of file content.

    Unlike content_hash this reads the raw bytes on disk, so the result
    matches content_hash() of exactly what was written.

    Args:
        path: Path to file.
        algorithm: Hash algorithm (default sha256).
        chunk_size: Chunk size for reading large files.

    Returns:
        Hex digest of hash.

    Raises:
        OSError: If the file cannot be read.
    """
    hasher = hashlib.new(algorithm)

    with open(path, "rb") as f:
        while chunk := f.read(chunk_size):
            hasher.update(chunk)

    return hasher.hexdigest()
