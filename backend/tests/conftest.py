import os

# До импорта приложения: тесты работают на in-memory SQLite
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from asset_service.core.database import Base, engine, get_db_session
from asset_service.core.security import UserContext, create_access_token
from asset_service.models.base import Asset, AssetAuditLog, User
from asset_service.repositories.asset_repository import create_asset_with_stock_db
from asset_service.repositories.user_repository import create_user
from asset_service.scripts.seed_permissions import seed_permissions


@pytest.fixture(autouse=True)
def db_schema():
    Base.metadata.create_all(bind=engine)
    seed_permissions()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user():
    def _make(username: str, auto_accept: bool = True, is_admin: bool = False) -> User:
        return create_user(
            User(
                client_id=f"client-{username}",
                username=username,
                full_name=username.title(),
                email=f"{username}@example.com",
                is_admin=is_admin,
                auto_accept_group_invites=auto_accept,
            )
        )

    return _make


@pytest.fixture
def make_asset():
    def _make(owner: User, name: str, quantity: int = 0) -> Asset:
        asset, _ = create_asset_with_stock_db(
            Asset(
                user_client_id=owner.client_id,
                name=name,
                created_by=owner.client_id,
                updated_by=owner.client_id,
            ),
            quantity,
        )
        return asset

    return _make


@pytest.fixture
def ctx():
    def _ctx(user: User) -> UserContext:
        return UserContext(
            user_id=user.id,
            client_id=user.client_id,
            full_name=user.full_name,
            is_admin=bool(user.is_admin),
        )

    return _ctx


@pytest.fixture
def count_rows():
    def _count(model, **filters) -> int:
        with get_db_session() as db:
            return db.query(model).filter_by(**filters).count()

    return _count


@pytest.fixture
def audit_count(count_rows):
    return lambda: count_rows(AssetAuditLog)


@pytest.fixture
def client():
    from asset_service.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        token = create_access_token({"client_id": user.client_id})
        return {"Authorization": f"Bearer {token}"}

    return _headers
