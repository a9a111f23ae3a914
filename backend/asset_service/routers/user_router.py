from fastapi import APIRouter, Depends

from asset_service.core.security import UserContext, get_current_user
from asset_service.schemas.common_schemas import ApiResponse, success_response
from asset_service.schemas.user_schemas import UserResponse, UserSettingsUpdate
from asset_service.services.user_service import get_profile_service, update_settings_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=ApiResponse[UserResponse])
def profile(current_user: UserContext = Depends(get_current_user)):
    return success_response(get_profile_service(current_user))


@router.patch("/me/settings", response_model=ApiResponse[UserResponse])
def update_settings(
    settings_data: UserSettingsUpdate,
    current_user: UserContext = Depends(get_current_user),
):
    """Настройки пользователя: автопринятие приглашений в группу."""
    return success_response(update_settings_service(settings_data, current_user), "Settings updated")
