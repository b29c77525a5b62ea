"""Shared fixtures: in-memory SQLite stores, the demo store and a Flask client."""
from contextlib import contextmanager

import pytest
from sqlalchemy.exc import OperationalError

from app import create_app
from common.db.session import create_db_engine, create_session_factory, init_db
from common.services.demo_store import DEMO_ITEMS, DemoDataStore
from config import StoreConfig


@pytest.fixture
def session_factory():
    engine = create_db_engine("sqlite://")
    factory = create_session_factory(engine)
    init_db(engine, factory, items=DEMO_ITEMS)
    yield factory
    engine.dispose()


@pytest.fixture
def unreachable_session_factory():
    @contextmanager
    def get_session():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))
        yield  # pragma: no cover

    return get_session


@pytest.fixture
def demo_store():
    return DemoDataStore()


@pytest.fixture
def store_config():
    return StoreConfig.load(
        {
            "STORE_BACKEND": "demo",
            "ORDER_NUMBER_STRATEGY": "counter",
            "STORE_ADMIN_EMAIL": "admin@example.com",
            "STORE_ADMIN_PASSWORD": "admin123",
            "RAZORPAY_KEY_ID": "",
            "RAZORPAY_KEY_SECRET": "",
        }
    )


@pytest.fixture
def app(store_config, demo_store):
    app = create_app(store_config, store=demo_store)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
