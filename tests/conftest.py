import pytest
from fastapi.testclient import TestClient

from shredbox.config import Settings
from shredbox.database import build_engine, build_session_factory, init_db
from shredbox.main import create_app


@pytest.fixture
def settings(tmp_path):
    webroot = tmp_path / "www"
    webroot.mkdir()
    (webroot / "index.html").write_text("<html>upload here</html>")
    folder = tmp_path / "uploads"
    folder.mkdir()
    return Settings(
        webroot=webroot,
        vhost="files.test",
        dbfile=tmp_path / "shredbox.db",
        folder=folder,
        filelen=6,
        default_ttl=3600,
        maximum_ttl=432000,
        embedded_reaper=False,
    )


@pytest.fixture
def engine(settings):
    engine = build_engine(settings.sqlalchemy_url)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
