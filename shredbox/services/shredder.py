"""Multi-pass overwrite before unlink.

Each pass rewrites the whole file from offset 0 and is fsynced before the
next one starts: ``passes`` rounds of fresh random bytes, then one round of
zeros, then the path is unlinked. Any error aborts the sequence with the file
still in place, so the caller can try again later.

This only defeats remnant recovery where rewriting a logical offset rewrites
the same physical blocks (plain rotational disks). Copy-on-write and
log-structured filesystems, SSDs and anything wear-levelled keep old blocks
around regardless.
"""

import logging
import os
import secrets
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_PASSES = 7
CHUNK_SIZE = 1024 * 1024

MEDIA_WARNING = (
    "shredding is only effective on rotational disks without copy-on-write; "
    "SSD, CoW and log-structured storage may retain file remnants"
)


def pending_path(folder: Path, name: str) -> Path:
    """Where ``name`` is parked while it is being shredded."""
    return folder / f".{name}.shred"


def _overwrite(fh, size: int, fill) -> None:
    fh.seek(0)
    remaining = size
    while remaining:
        n = min(CHUNK_SIZE, remaining)
        fh.write(fill(n))
        remaining -= n
    fh.flush()
    os.fsync(fh.fileno())


def _zeros(n: int) -> bytes:
    return bytes(n)


def shred(path: Path, passes: int = DEFAULT_PASSES) -> None:
    """Overwrite ``path`` ``passes`` times with random data, once with zeros, unlink it.

    Raises ``OSError`` on any failure; the file is left on disk in that case.
    """
    size = os.stat(path).st_size
    with open(path, "r+b") as fh:
        for _ in range(passes):
            _overwrite(fh, size, secrets.token_bytes)
        _overwrite(fh, size, _zeros)
    os.unlink(path)
    logger.debug("shredded %s (%d bytes, %d passes)", path, size, passes)
