import pytest
from dotenv import load_dotenv

from textguard import create_app, db


def _build_app(overrides=None):
    app = create_app("testing", overrides=overrides)
    with app.app_context():
        db.create_all()
    return app


def _teardown_app(app):
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app():
    """Application fixture for pytest-flask 'client' support.

    Uses an in-memory SQLite database unless TEXTGUARD_TEST_DATABASE_URL
    points to a real PostgreSQL.
    """
    load_dotenv()
    app = _build_app()
    yield app
    _teardown_app(app)


@pytest.fixture
def app_ctx(app):
    """Application context bound to the same app used by the Flask client."""
    with app.app_context():
        yield


@pytest.fixture
def make_app():
    """Factory for apps with config overrides (policy variants).

    Tables are created on build and dropped at teardown.
    """
    built = []

    def _make(**overrides):
        app = _build_app(overrides)
        built.append(app)
        return app

    yield _make
    for app in built:
        _teardown_app(app)


@pytest.fixture
def is_sqlite(app):
    return app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite")
