import uuid

from sqlalchemy import TIMESTAMP
from sqlalchemy import Uuid as UUIDType
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)

from asset_service.core.constants import (
    TABLE_ASSET,
    TABLE_ASSET_AUDIT_LOG,
    TABLE_ASSET_GROUP,
    TABLE_ASSET_GROUP_ASSET,
    TABLE_ASSET_GROUP_INVITATION,
    TABLE_ASSET_GROUP_MEMBER,
    TABLE_ASSET_GROUP_MEMBER_PERMISSION,
    TABLE_ASSET_GROUP_PERMISSION,
    TABLE_ASSET_STOCK,
    TABLE_ASSET_STOCK_HISTORY,
    TABLE_USERS,
    InvitationStatus,
)
from asset_service.core.database import Base


class User(Base):
    __tablename__ = TABLE_USERS

    id = Column(UUIDType(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(String(50), unique=True, nullable=False)
    username = Column(String(50), unique=True, nullable=False)
    full_name = Column(String(255))
    email = Column(String(255), unique=True)
    profile_picture = Column(Text)
    is_active = Column(Boolean, default=True)
    is_admin = Column(Boolean, default=False)
    # False -> приглашение в группу уходит на подтверждение
    auto_accept_group_invites = Column(Boolean, default=True, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    deleted_at = Column(TIMESTAMP(timezone=True))

    def to_response_dict(self):
        return {
            "id": str(self.id),
            "client_id": self.client_id,
            "username": self.username,
            "full_name": self.full_name,
            "email": self.email,
            "profile_picture": self.profile_picture,
            "is_active": self.is_active,
            "is_admin": self.is_admin,
            "auto_accept_group_invites": self.auto_accept_group_invites,
            "created_at": self.created_at,
            "updated_at": self.updated_at if self.updated_at else self.created_at,
        }


class Asset(Base):
    __tablename__ = TABLE_ASSET

    id = Column(UUIDType(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_client_id = Column(String(50), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    serial_number = Column(String(100))
    barcode = Column(String(100))
    notes = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    created_by = Column(String(255))
    updated_at = Column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    updated_by = Column(String(255))
    deleted_at = Column(TIMESTAMP(timezone=True))
    deleted_by = Column(String(255))


class AssetGroup(Base):
    __tablename__ = TABLE_ASSET_GROUP
    __table_args__ = (
        CheckConstraint(
            "current_uses IS NULL OR max_uses IS NULL OR current_uses <= max_uses",
            name="ck_asset_group_invitation_uses",
        ),
    )

    id = Column(UUIDType(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    owner_user_id = Column(UUIDType(as_uuid=True), ForeignKey(f"{TABLE_USERS}.id"), nullable=False)
    invitation_token = Column(String(100), unique=True)
    max_uses = Column(Integer)
    current_uses = Column(Integer)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    created_by = Column(String(255))
    updated_at = Column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    updated_by = Column(String(255))
    deleted_at = Column(TIMESTAMP(timezone=True), index=True)
    deleted_by = Column(String(255))


class AssetGroupPermission(Base):
    __tablename__ = TABLE_ASSET_GROUP_PERMISSION

    id = Column(UUIDType(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False)  # "Admin", "Manage", "Read-Write", "Read"
    description = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    created_by = Column(String(255))
    updated_at = Column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    updated_by = Column(String(255))


class AssetGroupMember(Base):
    __tablename__ = TABLE_ASSET_GROUP_MEMBER

    # unique: пользователь состоит не более чем в одной группе
    user_id = Column(
        UUIDType(as_uuid=True), ForeignKey(f"{TABLE_USERS}.id"), primary_key=True, unique=True
    )
    asset_group_id = Column(
        UUIDType(as_uuid=True), ForeignKey(f"{TABLE_ASSET_GROUP}.id"), primary_key=True
    )
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    created_by = Column(String(255))


class AssetGroupMemberPermission(Base):
    __tablename__ = TABLE_ASSET_GROUP_MEMBER_PERMISSION

    user_id = Column(UUIDType(as_uuid=True), ForeignKey(f"{TABLE_USERS}.id"), primary_key=True)
    asset_group_id = Column(
        UUIDType(as_uuid=True), ForeignKey(f"{TABLE_ASSET_GROUP}.id"), primary_key=True
    )
    permission_id = Column(
        UUIDType(as_uuid=True),
        ForeignKey(f"{TABLE_ASSET_GROUP_PERMISSION}.id"),
        primary_key=True,
    )
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    created_by = Column(String(255))


class AssetGroupAsset(Base):
    __tablename__ = TABLE_ASSET_GROUP_ASSET

    asset_id = Column(UUIDType(as_uuid=True), ForeignKey(f"{TABLE_ASSET}.id"), primary_key=True)
    asset_group_id = Column(
        UUIDType(as_uuid=True), ForeignKey(f"{TABLE_ASSET_GROUP}.id"), primary_key=True
    )
    user_id = Column(UUIDType(as_uuid=True), ForeignKey(f"{TABLE_USERS}.id"), primary_key=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    created_by = Column(String(255))


class AssetGroupInvitation(Base):
    __tablename__ = TABLE_ASSET_GROUP_INVITATION

    id = Column(UUIDType(as_uuid=True), primary_key=True, default=uuid.uuid4)
    asset_group_id = Column(
        UUIDType(as_uuid=True), ForeignKey(f"{TABLE_ASSET_GROUP}.id"), nullable=False
    )
    invited_user_id = Column(UUIDType(as_uuid=True), ForeignKey(f"{TABLE_USERS}.id"), nullable=False)
    invited_by_user_id = Column(UUIDType(as_uuid=True), ForeignKey(f"{TABLE_USERS}.id"), nullable=False)
    token = Column(String(100), unique=True, nullable=False)
    status = Column(String(20), nullable=False, default=InvitationStatus.PENDING.value)
    message = Column(Text)
    invited_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    responded_at = Column(TIMESTAMP(timezone=True))
    expires_at = Column(TIMESTAMP(timezone=True), nullable=False, index=True)
    created_by = Column(String(255))
    updated_by = Column(String(255))


class AssetStock(Base):
    __tablename__ = TABLE_ASSET_STOCK
    __table_args__ = (
        CheckConstraint("initial_quantity >= 0", name="ck_asset_stock_initial_quantity"),
        CheckConstraint("latest_quantity >= 0", name="ck_asset_stock_latest_quantity"),
        CheckConstraint("quantity >= 0", name="ck_asset_stock_quantity"),
        CheckConstraint(
            "change_type IN ('INCREASE', 'DECREASE')", name="ck_asset_stock_change_type"
        ),
    )

    id = Column(UUIDType(as_uuid=True), primary_key=True, default=uuid.uuid4)
    asset_id = Column(
        UUIDType(as_uuid=True), ForeignKey(f"{TABLE_ASSET}.id"), nullable=False, unique=True
    )
    user_client_id = Column(String(50), nullable=False, index=True)
    initial_quantity = Column(Integer, nullable=False)
    latest_quantity = Column(Integer, nullable=False)
    change_type = Column(String(50), nullable=False)
    quantity = Column(Integer, nullable=False)  # размер последнего изменения
    reason = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    created_by = Column(String(255))
    updated_at = Column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    updated_by = Column(String(255))


class AssetStockHistory(Base):
    __tablename__ = TABLE_ASSET_STOCK_HISTORY
    __table_args__ = (
        CheckConstraint("previous_quantity >= 0", name="ck_stock_history_previous_quantity"),
        CheckConstraint("new_quantity >= 0", name="ck_stock_history_new_quantity"),
        CheckConstraint("quantity_changed > 0", name="ck_stock_history_quantity_changed"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    stock_id = Column(UUIDType(as_uuid=True), ForeignKey(f"{TABLE_ASSET_STOCK}.id"), nullable=False, index=True)
    asset_id = Column(UUIDType(as_uuid=True), ForeignKey(f"{TABLE_ASSET}.id"), nullable=False, index=True)
    asset_group_id = Column(UUIDType(as_uuid=True), ForeignKey(f"{TABLE_ASSET_GROUP}.id"))
    user_client_id = Column(String(50), nullable=False)
    change_type = Column(String(50), nullable=False)
    previous_quantity = Column(Integer, nullable=False)
    new_quantity = Column(Integer, nullable=False)
    quantity_changed = Column(Integer, nullable=False)
    reason = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    created_by = Column(String(255))


class AssetAuditLog(Base):
    __tablename__ = TABLE_ASSET_AUDIT_LOG

    id = Column(Integer, primary_key=True, autoincrement=True)
    table_name = Column(String(100), nullable=False)
    action = Column(String(20), nullable=False)  # CREATE, UPDATE, DELETE
    old_data = Column(Text)
    new_data = Column(Text)
    performed_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    performed_by = Column(String(255))
