import logging
import os
import secrets
from pathlib import Path

from shredbox.config import DEFAULT_ALPHABET
from shredbox.services.shredder import pending_path

logger = logging.getLogger(__name__)

# Retries past this point usually mean filelen is too short for the volume.
RETRY_WARN_THRESHOLD = 5


def new_name(length: int, alphabet: str = DEFAULT_ALPHABET) -> str:
    """Random identifier of exactly ``length`` characters drawn from ``alphabet``.

    Each random byte is reduced modulo the alphabet size, the slight bias
    that introduces is acceptable here.
    """
    if length <= 0:
        raise ValueError(f"name length must be positive, got {length}")
    n = len(alphabet)
    return "".join(alphabet[b % n] for b in secrets.token_bytes(length))


def claim_path(folder: Path, name: str) -> Path:
    """Hidden placeholder that reserves ``name`` until its content is in place."""
    return folder / f".{name}.claim"


def _in_use(folder: Path, name: str) -> bool:
    return (folder / name).exists() or pending_path(folder, name).exists()


def allocate_name(
    folder: Path, extension: str, length: int, alphabet: str = DEFAULT_ALPHABET
) -> str:
    """Reserve ``<identifier><extension>`` in ``folder`` and return it.

    The reservation is the claim file, created with ``O_EXCL`` so two callers
    can never both win the same name. Writers move the claim onto the final
    name in one rename, hence the second existence check after claiming. The
    caller must either rename the claim into place or ``release_name`` it.
    Raises ``OSError`` if the folder is unusable.
    """
    attempts = 0
    while True:
        attempts += 1
        name = new_name(length, alphabet) + extension
        if not _in_use(folder, name):
            try:
                fd = os.open(claim_path(folder, name), os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
            except FileExistsError:
                fd = None
            if fd is not None:
                os.close(fd)
                if not _in_use(folder, name):
                    if attempts > RETRY_WARN_THRESHOLD:
                        logger.warning(
                            "needed %d attempts to find a free name of length %d",
                            attempts,
                            length,
                        )
                    return name
                release_name(folder, name)
        if attempts == RETRY_WARN_THRESHOLD:
            logger.warning(
                "%d name collisions in a row at length %d, consider raising filelen",
                attempts,
                length,
            )


def release_name(folder: Path, name: str) -> None:
    try:
        os.unlink(claim_path(folder, name))
    except FileNotFoundError:
        pass
