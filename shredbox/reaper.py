import asyncio
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy.orm import sessionmaker

from . import celery_app
from .config import get_settings
from .database import build_engine, build_session_factory, init_db
from .services.ledger import ExpiryLedger
from .services.shredder import DEFAULT_PASSES, pending_path, shred

logger = logging.getLogger(__name__)


@dataclass
class ReapReport:
    shredded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class Reaper:
    """Shreds expired files and drops their ledger entries.

    An entry is only removed once its file is gone; a failed shred keeps the
    entry so the next cycle retries it.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        folder: Path,
        passes: int = DEFAULT_PASSES,
        interval: float = 5.0,
        clock=time.time,
    ):
        self.session_factory = session_factory
        self.folder = Path(folder)
        self.passes = passes
        self.interval = interval
        self.clock = clock
        self._stop: asyncio.Event | None = None

    def run_once(self) -> ReapReport:
        # Shredding happens outside any transaction: the scan is one short
        # read and each removal commits on its own, so uploads never wait
        # behind a slow shred.
        now = self.clock()
        report = ReapReport()
        with self.session_factory() as db:
            due = [(n, e) for n, e in ExpiryLedger(db).scan_all() if e <= now]

        for name, expires_at in due:
            try:
                self._destroy(name)
            except OSError as exc:
                logger.error("shredding %s failed: %s", name, exc)
                report.failed.append(name)
                continue
            with self.session_factory() as db:
                ExpiryLedger(db).delete(name, expires_at=expires_at)
                db.commit()
            report.shredded.append(name)
        return report

    def _destroy(self, name: str) -> None:
        # Park the file under a hidden name first: from a reader's point of
        # view it disappears in one step, before any byte is overwritten.
        parked = pending_path(self.folder, name)
        try:
            os.replace(self.folder / name, parked)
        except FileNotFoundError:
            pass
        if not parked.exists():
            logger.warning("%s is already gone, dropping its expiry entry", name)
            return
        shred(parked, self.passes)
        logger.info("shredded file %s", name)

    async def run(self) -> None:
        self._stop = asyncio.Event()
        logger.info("reaper running every %.1fs", self.interval)
        while not self._stop.is_set():
            try:
                await asyncio.to_thread(self.run_once)
            except Exception:
                logger.exception("reaper cycle failed")
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
        logger.info("reaper stopped")

    def stop(self) -> None:
        if self._stop is not None:
            self._stop.set()


@celery_app.task(name="shredbox.reaper.reap_expired")
def reap_expired():
    settings = get_settings()
    engine = build_engine(settings.sqlalchemy_url)
    try:
        init_db(engine)
        reaper = Reaper(
            build_session_factory(engine), settings.folder, passes=settings.shred_passes
        )
        report = reaper.run_once()
    finally:
        engine.dispose()
    return {"shredded": len(report.shredded), "failed": len(report.failed)}
