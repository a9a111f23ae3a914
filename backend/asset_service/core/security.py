import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol
from uuid import UUID

from fastapi import Depends, Request
from jose import JWTError, jwt
from sqlalchemy.exc import SQLAlchemyError

from asset_service.core.config import settings
from asset_service.core.exceptions import AuthenticationError
from asset_service.repositories.user_repository import get_user_by_client_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserContext:
    user_id: UUID
    client_id: str
    full_name: Optional[str] = None
    is_admin: bool = False


class UserContextResolver(Protocol):
    def resolve(self, token: str) -> UserContext: ...


class JWTUserContextResolver:
    """Достаёт client_id из JWT и загружает пользователя из справочника."""

    def resolve(self, token: str) -> UserContext:
        try:
            payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        except JWTError as e:
            raise AuthenticationError("Invalid or expired token") from e

        # sub оставлен для старых токенов
        client_id = payload.get("client_id") or payload.get("sub")
        if not client_id:
            raise AuthenticationError("Token has no client id")

        try:
            user = get_user_by_client_id(client_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to resolve user {client_id}: {e}", exc_info=True)
            raise AuthenticationError("Could not resolve user") from e

        if not user or not user.is_active:
            raise AuthenticationError("User not found")
        return UserContext(
            user_id=user.id,
            client_id=user.client_id,
            full_name=user.full_name,
            is_admin=bool(user.is_admin),
        )


user_context_resolver = JWTUserContextResolver()


def get_user_context_resolver() -> UserContextResolver:
    return user_context_resolver


def create_access_token(data: dict):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return encoded_jwt


def _extract_token(request: Request) -> Optional[str]:
    # Заголовок приоритетнее cookie, которую ставит фронтенд
    raw = request.headers.get("Authorization") or request.cookies.get("Authorization")
    if not raw:
        return None
    scheme, _, token = raw.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def get_current_user(
    request: Request,
    resolver: UserContextResolver = Depends(get_user_context_resolver),
) -> UserContext:
    token = _extract_token(request)
    if not token:
        raise AuthenticationError()
    return resolver.resolve(token)
