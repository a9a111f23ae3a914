from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from asset_service.core.security import UserContext, get_current_user
from asset_service.schemas.common_schemas import ApiResponse, success_response
from asset_service.schemas.permission_schemas import (
    PermissionCreate,
    PermissionResponse,
    PermissionUpdate,
)
from asset_service.services.permission_service import (
    create_permission_service,
    delete_permission_service,
    get_permission_service,
    list_permissions_service,
    update_permission_service,
)

router = APIRouter(tags=["Permissions"])


@router.get("/permissions", response_model=ApiResponse[List[PermissionResponse]])
def list_permissions(current_user: UserContext = Depends(get_current_user)):
    """Каталог прав (доступен всем авторизованным)."""
    return success_response(list_permissions_service(current_user))


@router.get("/admin/permissions/{permission_id}", response_model=ApiResponse[PermissionResponse])
def get_permission(
    permission_id: UUID,
    current_user: UserContext = Depends(get_current_user),
):
    return success_response(get_permission_service(permission_id, current_user))


@router.post("/admin/permissions", response_model=ApiResponse[PermissionResponse], status_code=201)
def create_permission(
    permission_data: PermissionCreate,
    current_user: UserContext = Depends(get_current_user),
):
    permission = create_permission_service(permission_data, current_user)
    return success_response(permission, "Permission created", 201)


@router.put("/admin/permissions/{permission_id}", response_model=ApiResponse[PermissionResponse])
def update_permission(
    permission_id: UUID,
    permission_data: PermissionUpdate,
    current_user: UserContext = Depends(get_current_user),
):
    permission = update_permission_service(permission_id, permission_data, current_user)
    return success_response(permission, "Permission updated")


@router.delete("/admin/permissions/{permission_id}", response_model=ApiResponse[dict])
def delete_permission(
    permission_id: UUID,
    current_user: UserContext = Depends(get_current_user),
):
    """Удаление права из каталога вместе со всеми выданными грантами."""
    return success_response(delete_permission_service(permission_id, current_user), "Permission deleted")
