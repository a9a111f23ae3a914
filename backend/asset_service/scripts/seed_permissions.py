"""Создаёт таблицы и заполняет каталог прав группы: Admin, Manage, Read-Write, Read."""
import logging

from asset_service.core.constants import PermissionName
from asset_service.core.database import Base, engine, get_db_session
from asset_service.models.base import AssetGroupPermission

logger = logging.getLogger(__name__)

DESCRIPTIONS = {
    PermissionName.ADMIN: "Full control over the group, its members and permissions",
    PermissionName.MANAGE: "Rename the group and invite members",
    PermissionName.READ_WRITE: "Change stock of shared assets",
    PermissionName.READ: "View the group and its shared assets",
}


def seed_permissions(actor: str = "system") -> int:
    """Добавляет недостающие права каталога. Возвращает число добавленных."""
    created = 0
    with get_db_session() as db:
        existing = {name for (name,) in db.query(AssetGroupPermission.name).all()}
        for permission in PermissionName:
            if permission.value in existing:
                continue
            db.add(
                AssetGroupPermission(
                    name=permission.value,
                    description=DESCRIPTIONS[permission],
                    created_by=actor,
                    updated_by=actor,
                )
            )
            created += 1
    return created


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    Base.metadata.create_all(bind=engine)
    logger.info(f"Seeded {seed_permissions()} group permissions")
