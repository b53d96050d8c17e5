from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base


# database_url example:
# sqlite:///var/lib/shredbox/shredbox.db
Base = declarative_base()

SQLITE_BUSY_TIMEOUT = 30.0


def build_engine(url: str) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        # The reaper thread and request threads share the pool.
        connect_args["check_same_thread"] = False
        # Writers wait on each other instead of failing with "database is locked".
        connect_args["timeout"] = SQLITE_BUSY_TIMEOUT
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    # Registers the model on Base.metadata.
    from shredbox.models import expiry_entry  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
