from typing import Optional
from uuid import UUID

from asset_service.core.database import get_db_session
from asset_service.models.base import User


def get_user_by_client_id(client_id: str) -> Optional[User]:
    with get_db_session() as db:
        return (
            db.query(User)
            .filter(User.client_id == client_id, User.deleted_at.is_(None))
            .first()
        )


def get_user_by_id(user_id: UUID) -> Optional[User]:
    with get_db_session() as db:
        return db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()


def create_user(user: User) -> User:
    with get_db_session() as db:
        db.add(user)
        db.commit()
        db.refresh(user)
        return user


def update_user_settings_db(user_id: UUID, update_data: dict) -> Optional[User]:
    with get_db_session() as db:
        user = db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()
        if user:
            for key, value in update_data.items():
                setattr(user, key, value)
            db.commit()
            db.refresh(user)
        return user
