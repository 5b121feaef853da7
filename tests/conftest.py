import pytest

from qualitivate import create_app
from qualitivate.config import Config
from qualitivate.extensions import db
from tests.factories import Tenants


class SqliteConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SECRET_KEY = 'test-secret-key'
    JWT_SECRET_KEY = 'test-jwt-secret-key-that-is-long-enough'
    LOG_LEVEL = 'WARNING'


@pytest.fixture
def app():
    app = create_app(SqliteConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def tenants(app):
    return Tenants()
