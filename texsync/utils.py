"""Utility functions for texsync."""

import hashlib
import os
from pathlib import Path

from .exceptions import HashError

# =============================================================================
# Constants for file operations
# =============================================================================

# Read/stream chunk size for hashing and downloads (64 KB)
DEFAULT_CHUNK_SIZE: int = 64 * 1024


# =============================================================================
# Hash calculation utilities
# =============================================================================


def _blob_header(size: int) -> bytes:
    return f"blob {size}\0".encode("ascii")


def compute_blob_id(data: bytes) -> str:
    """Compute the git blob id of some content.

    The id is the SHA-1 of a ``blob <size>\\0`` header followed by the raw
    bytes, which is what GitHub reports as ``sha`` for tree blobs.

    Args:
        data: Raw file content

    Returns:
        40-character lower-case hex digest

    Examples:
        >>> compute_blob_id(b"")
        'e69de29bb2d1d6434b8b29ae775ad8c2e48c5391'
        >>> compute_blob_id(b"hello world\\n")
        '3b18e512dba79e4c8300dd08aeb37f8e728b8dad'
    """
    hasher = hashlib.sha1(_blob_header(len(data)))
    hasher.update(data)
    return hasher.hexdigest()


def hash_file(path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Compute the git blob id of a local file without loading it whole.

    Args:
        path: File to hash
        chunk_size: Read buffer size

    Returns:
        40-character lower-case hex digest

    Raises:
        HashError: If the file cannot be opened or read
    """
    try:
        with open(path, "rb") as f:
            # The header needs the size before any content is hashed
            size = os.fstat(f.fileno()).st_size
            hasher = hashlib.sha1(_blob_header(size))
            read = 0
            while chunk := f.read(chunk_size):
                hasher.update(chunk)
                read += len(chunk)
    except OSError as e:
        raise HashError(path, e) from e
    if read != size:
        raise HashError(path, OSError(f"file changed while hashing ({read}/{size})"))
    return hasher.hexdigest()


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"
