from asset_service.core.exceptions import NotFoundError, db_errors
from asset_service.core.security import UserContext
from asset_service.repositories.user_repository import get_user_by_id, update_user_settings_db
from asset_service.schemas.user_schemas import UserResponse, UserSettingsUpdate


def get_profile_service(caller: UserContext) -> UserResponse:
    with db_errors("get_profile", caller.client_id):
        user = get_user_by_id(caller.user_id)
    if not user:
        raise NotFoundError("User not found")
    return UserResponse.model_validate(user.to_response_dict())


def update_settings_service(data: UserSettingsUpdate, caller: UserContext) -> UserResponse:
    with db_errors("update_settings", caller.client_id):
        user = update_user_settings_db(caller.user_id, data.model_dump(exclude_unset=True))
    if not user:
        raise NotFoundError("User not found")
    return UserResponse.model_validate(user.to_response_dict())
