import logging
from typing import List
from uuid import UUID

from asset_service.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    db_errors,
)
from asset_service.core.security import UserContext
from asset_service.models.base import AssetGroupPermission
from asset_service.repositories.permission_repository import (
    create_permission_db,
    delete_permission_db,
    get_permission_by_id_db,
    get_permission_by_name_db,
    get_permissions_db,
    update_permission_db,
)
from asset_service.schemas.permission_schemas import (
    PermissionCreate,
    PermissionResponse,
    PermissionUpdate,
)

logger = logging.getLogger(__name__)


def _require_admin(caller: UserContext) -> None:
    if not caller.is_admin:
        logger.warning(f"Client {caller.client_id} denied to manage permission catalog")
        raise PermissionDeniedError("Access denied")


def list_permissions_service(caller: UserContext) -> List[PermissionResponse]:
    with db_errors("list_permissions", caller.client_id):
        permissions = get_permissions_db()
    return [PermissionResponse.model_validate(p) for p in permissions]


def get_permission_service(permission_id: UUID, caller: UserContext) -> PermissionResponse:
    _require_admin(caller)
    with db_errors("get_permission", caller.client_id):
        permission = get_permission_by_id_db(permission_id)
    if not permission:
        raise NotFoundError("Permission not found")
    return PermissionResponse.model_validate(permission)


def create_permission_service(data: PermissionCreate, caller: UserContext) -> PermissionResponse:
    _require_admin(caller)
    name = data.name.strip()
    if not name:
        raise ValidationError("Permission name is required")
    with db_errors("create_permission", caller.client_id, "Permission already exists"):
        if get_permission_by_name_db(name):
            raise ConflictError("Permission already exists")
        permission = AssetGroupPermission(
            name=name,
            description=data.description,
            created_by=caller.client_id,
            updated_by=caller.client_id,
        )
        created = create_permission_db(permission, caller.client_id)
    return PermissionResponse.model_validate(created)


def update_permission_service(permission_id: UUID, data: PermissionUpdate, caller: UserContext) -> PermissionResponse:
    _require_admin(caller)
    update_data = data.model_dump(exclude_unset=True)
    if "name" in update_data:
        update_data["name"] = (update_data["name"] or "").strip()
        if not update_data["name"]:
            raise ValidationError("Permission name is required")
    with db_errors("update_permission", caller.client_id, "Permission already exists"):
        if "name" in update_data:
            existing = get_permission_by_name_db(update_data["name"])
            if existing and existing.id != permission_id:
                raise ConflictError("Permission already exists")
        permission = update_permission_db(permission_id, update_data, caller.client_id)
    if not permission:
        raise NotFoundError("Permission not found")
    return PermissionResponse.model_validate(permission)


def delete_permission_service(permission_id: UUID, caller: UserContext) -> dict:
    _require_admin(caller)
    with db_errors("delete_permission", caller.client_id):
        deleted = delete_permission_db(permission_id, caller.client_id)
    if not deleted:
        raise NotFoundError("Permission not found")
    logger.info(f"Permission {permission_id} deleted by {caller.client_id}")
    return {"permission_id": str(permission_id)}
