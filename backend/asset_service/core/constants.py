from enum import Enum


class PermissionName(str, Enum):
    ADMIN = "Admin"
    MANAGE = "Manage"
    READ_WRITE = "Read-Write"
    READ = "Read"


# Права, которые получает каждый новый участник группы
BASELINE_PERMISSIONS = (PermissionName.READ_WRITE.value, PermissionName.READ.value)

GROUP_ADMIN_PERMISSIONS = (PermissionName.ADMIN.value,)
GROUP_MANAGE_PERMISSIONS = (PermissionName.ADMIN.value, PermissionName.MANAGE.value)
GROUP_STOCK_PERMISSIONS = (
    PermissionName.ADMIN.value,
    PermissionName.MANAGE.value,
    PermissionName.READ_WRITE.value,
)


class ChangeType(str, Enum):
    INCREASE = "INCREASE"
    DECREASE = "DECREASE"


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


TABLE_USERS = "users"
TABLE_ASSET = "asset"
TABLE_ASSET_AUDIT_LOG = "asset_audit_log"
TABLE_ASSET_STOCK = "asset_stock"
TABLE_ASSET_STOCK_HISTORY = "asset_stock_history"
TABLE_ASSET_GROUP = "asset_group"
TABLE_ASSET_GROUP_PERMISSION = "asset_group_permission"
TABLE_ASSET_GROUP_MEMBER = "asset_group_member"
TABLE_ASSET_GROUP_MEMBER_PERMISSION = "asset_group_member_permission"
TABLE_ASSET_GROUP_ASSET = "asset_group_asset"
TABLE_ASSET_GROUP_INVITATION = "asset_group_invitation"
