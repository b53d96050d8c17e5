import logging
from typing import Iterator

from sqlalchemy import select
from sqlalchemy.orm import Session

from shredbox.models.expiry_entry import ExpiryEntry

logger = logging.getLogger(__name__)


def parse_expiry(raw: str) -> int:
    """Decode a stored expiry value. Raises ``ValueError`` on anything but a decimal integer."""
    raw = raw.strip()
    if not raw.lstrip("-").isdigit():
        raise ValueError(f"not a decimal timestamp: {raw!r}")
    return int(raw)


def _holds(entry: ExpiryEntry, expires_at: int) -> bool:
    try:
        return parse_expiry(entry.expires_at) == expires_at
    except ValueError:
        return False


class ExpiryLedger:
    """Stored filename -> absolute expiry (Unix seconds)."""

    def __init__(self, db_session: Session):
        self.db_session = db_session

    def put(self, name: str, expires_at: int) -> ExpiryEntry:
        """Record ``name``'s expiry and commit before returning."""
        entry = self.db_session.merge(ExpiryEntry(name=name, expires_at=str(int(expires_at))))
        self.db_session.commit()
        return entry

    def get(self, name: str) -> int | None:
        entry = self.db_session.get(ExpiryEntry, name)
        if entry is None:
            return None
        return parse_expiry(entry.expires_at)

    def entries(self) -> list[ExpiryEntry]:
        return list(self.db_session.scalars(select(ExpiryEntry).order_by(ExpiryEntry.name)))

    def scan_all(self) -> Iterator[tuple[str, int]]:
        """Yield ``(name, expires_at)`` in key order.

        Entries whose value does not parse are logged and skipped, never
        reported as expired.
        """
        for entry in self.entries():
            try:
                expires_at = parse_expiry(entry.expires_at)
            except ValueError:
                logger.error(
                    "expiration time could not be parsed for %s: %r", entry.name, entry.expires_at
                )
                continue
            yield entry.name, expires_at

    def delete(self, name: str, expires_at: int | None = None) -> bool:
        """Drop ``name``'s entry. The caller owns the transaction and commits.

        With ``expires_at`` the entry is only dropped if it still holds that
        value; a name re-issued since it was scanned keeps its new expiry.
        """
        entry = self.db_session.get(ExpiryEntry, name)
        if entry is None:
            return False
        if expires_at is not None and not _holds(entry, expires_at):
            logger.info("%s was re-issued, keeping its new expiry", name)
            return False
        self.db_session.delete(entry)
        self.db_session.flush()
        return True
