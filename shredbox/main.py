"""FastAPI application factory."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from shredbox.config import Settings, get_settings
from shredbox.database import build_engine, build_session_factory, init_db
from shredbox.reaper import Reaper
from shredbox.routers.frontend import router as frontend_router
from shredbox.routers.uploads import router as files_router
from shredbox.services.shredder import MEDIA_WARNING

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    # Failing here aborts startup.
    settings.folder.mkdir(parents=True, exist_ok=True)
    init_db(app.state.engine)
    logger.warning(MEDIA_WARNING)

    reaper_task = None
    if settings.embedded_reaper:
        reaper_task = asyncio.create_task(app.state.reaper.run())
    logger.info("serving https://%s on port %d", settings.vhost, settings.lport)
    try:
        yield
    finally:
        if reaper_task is not None:
            app.state.reaper.stop()
            await reaper_task
        app.state.engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    configure_logging()
    settings = settings or get_settings()

    app = FastAPI(title="shredbox", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = build_engine(settings.sqlalchemy_url)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.reaper = Reaper(
        app.state.session_factory,
        settings.folder,
        passes=settings.shred_passes,
        interval=settings.reap_interval,
    )

    app.include_router(files_router)
    app.include_router(frontend_router)
    return app
