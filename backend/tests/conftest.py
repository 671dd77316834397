from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
import sys

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.app.core import db as db_module
from backend.app.core.config import settings
from backend.app.core.rate_limiter import limiter
from backend.app.core.security import create_access_token
from backend.app.main import create_app
from backend.app.models import Base, Customer, Product, User


@pytest.fixture(autouse=True)
def jwt_secret(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setattr(settings, "JWT_SECRET", "test-signing-key")
    return settings.JWT_SECRET


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def engine() -> Iterator:
    engine = create_engine(
        "sqlite://",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db_module.enable_sqlite_foreign_keys(engine)

    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, class_=Session)


def _session_ctx(factory: sessionmaker):
    def _get_session() -> Iterator[Session]:
        session = factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return _get_session


@pytest.fixture()
def fastapi_app(monkeypatch: pytest.MonkeyPatch, session_factory: sessionmaker) -> FastAPI:
    monkeypatch.setattr(db_module, "SessionLocal", session_factory)
    limiter.reset()

    app = create_app()
    app.dependency_overrides[db_module.get_session] = _session_ctx(session_factory)
    return app


@pytest.fixture()
def app(fastapi_app: FastAPI) -> TestClient:
    return TestClient(fastapi_app)


@pytest.fixture()
def make_user(session_factory: sessionmaker) -> Callable[..., User]:
    def _make_user(email: str = "owner@example.com", name: str = "Owner") -> User:
        with session_factory() as session:
            user = User(email=email, name=name, google_id=f"google-{email}")
            session.add(user)
            session.commit()
            return user

    return _make_user


@pytest.fixture()
def auth_headers(make_user: Callable[..., User]) -> dict[str, str]:
    user = make_user()
    token = create_access_token(user.id, user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def catalog(session_factory: sessionmaker) -> dict[str, list[int]]:
    """Two customers and four products; returns their ids."""

    with session_factory() as session:
        customers = [
            Customer(name="Acme Corp", email="buyer@acme.com"),
            Customer(name="Globex", email="ops@globex.com"),
        ]
        products = [
            Product(name="Widget", sku="W-1"),
            Product(name="Gadget", sku="G-1"),
            Product(name="Gizmo"),
            Product(name="Doohickey"),
        ]
        session.add_all(customers + products)
        session.commit()
        return {
            "customers": [customer.id for customer in customers],
            "products": [product.id for product in products],
        }
