import pytest
from jose import jwt

from asset_service.core.config import settings
from asset_service.core.exceptions import AuthenticationError
from asset_service.core.security import JWTUserContextResolver, create_access_token


def test_resolves_user_from_client_id_claim(make_user):
    user = make_user("alice", is_admin=True)
    token = create_access_token({"client_id": user.client_id})

    context = JWTUserContextResolver().resolve(token)

    assert context.user_id == user.id
    assert context.client_id == user.client_id
    assert context.full_name == "Alice"
    assert context.is_admin is True


def test_accepts_legacy_sub_claim(make_user):
    user = make_user("alice")
    token = create_access_token({"sub": user.client_id})
    assert JWTUserContextResolver().resolve(token).user_id == user.id


def test_rejects_token_signed_with_other_key(make_user):
    user = make_user("alice")
    token = jwt.encode({"client_id": user.client_id}, "not-the-key", algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(AuthenticationError):
        JWTUserContextResolver().resolve(token)


def test_rejects_unknown_user():
    token = create_access_token({"client_id": "ghost"})
    with pytest.raises(AuthenticationError):
        JWTUserContextResolver().resolve(token)
