import gzip
import io
import logging
import os
import time
import zlib
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from shredbox.config import Settings
from shredbox.exceptions import StorageError, UploadRejected, UploadTooLarge
from shredbox.services import sniffing
from shredbox.services.ledger import ExpiryLedger
from shredbox.services.naming import allocate_name, claim_path, release_name

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


@dataclass
class StoredFile:
    name: str
    content_type: str
    size: int
    ttl: int
    expires_at: int


class UploadService:
    def __init__(self, settings: Settings, ledger: ExpiryLedger, clock=time.time):
        self.settings = settings
        self.ledger = ledger
        self.clock = clock

    def resolve_ttl(self, expiry: str | None) -> int:
        if expiry is None or expiry.strip() == "":
            return self.settings.default_ttl
        try:
            ttl = int(expiry.strip())
        except ValueError:
            raise UploadRejected("expiry must be a whole number of seconds")
        if ttl < 1 or ttl > self.settings.maximum_ttl:
            raise UploadRejected(f"expiry must lie in [1, {self.settings.maximum_ttl}]")
        return ttl

    def resolve_name_length(self, name_length: str | None) -> int:
        if name_length is None or name_length.strip() == "":
            return self.settings.filelen
        lo, hi = self.settings.min_name_length, self.settings.max_name_length
        try:
            length = int(name_length.strip())
        except ValueError:
            raise UploadRejected("name length must be a whole number")
        if not lo <= length <= hi:
            raise UploadRejected(f"name length must lie in [{lo}, {hi}]")
        return length

    def unwrap(self, filename: str, data: bytes) -> bytes:
        """Decompress uploads whose name carries the pre-compressed suffix."""
        if not filename.endswith(self.settings.compressed_suffix):
            return data
        if data[:2] != GZIP_MAGIC:
            raise UploadRejected("invalid gzip file")
        limit = self.settings.max_upload_bytes
        try:
            with gzip.GzipFile(fileobj=io.BytesIO(data)) as gz:
                plain = gz.read(limit + 1)
        except (OSError, EOFError, zlib.error) as exc:
            raise UploadRejected(f"could not decompress gzip file: {exc}") from exc
        if len(plain) > limit:
            raise UploadTooLarge(f"decompressed file exceeds {limit} bytes")
        return plain

    def store(
        self,
        filename: str,
        data: bytes,
        expiry: str | None = None,
        name_length: str | None = None,
    ) -> StoredFile:
        if len(data) > self.settings.max_upload_bytes:
            raise UploadTooLarge(f"file exceeds {self.settings.max_upload_bytes} bytes")

        data = self.unwrap(filename, data)
        content_type, extension = sniffing.detect(data)
        ttl = self.resolve_ttl(expiry)
        length = self.resolve_name_length(name_length)

        folder = self.settings.folder
        try:
            name = allocate_name(folder, extension, length, self.settings.name_alphabet)
        except OSError as exc:
            logger.error("cannot reserve a name in %s: %s", folder, exc)
            raise StorageError(f"cannot reserve a name in {folder}") from exc
        expires_at = int(self.clock()) + ttl

        try:
            try:
                self.ledger.put(name, expires_at)
            except SQLAlchemyError:
                # The file will never be reaped; keep the upload anyway.
                self.ledger.db_session.rollback()
                logger.exception("failed to put expiry for %s", name)
            self._write(folder, name, data)
        except BaseException:
            release_name(folder, name)
            raise
        logger.info("wrote new file %s (%s, %d bytes, ttl %ds)", name, content_type, len(data), ttl)
        return StoredFile(
            name=name, content_type=content_type, size=len(data), ttl=ttl, expires_at=expires_at
        )

    def _write(self, folder: Path, name: str, data: bytes) -> None:
        # Fill the hidden claim file, then rename it onto the public name so
        # readers never see a partial file.
        claim = claim_path(folder, name)
        try:
            with open(claim, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.chmod(claim, 0o644)
            os.replace(claim, folder / name)
        except OSError as exc:
            logger.error("error writing %s: %s", name, exc)
            raise StorageError(f"could not write {name}") from exc

    def public_url(self, name: str) -> str:
        return f"https://{self.settings.vhost}/uploads/{name}"
