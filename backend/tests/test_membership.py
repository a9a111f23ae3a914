from datetime import datetime, timezone

import pytest

from asset_service.core.database import get_db_session
from asset_service.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from asset_service.models.base import AssetGroupAsset, AssetGroupMember, AssetGroupMemberPermission, User
from asset_service.repositories.member_repository import get_member_db
from asset_service.repositories.permission_repository import get_member_permissions_db, get_permission_by_name_db
from asset_service.schemas.group_schemas import GroupCreate, GroupMemberInvite
from asset_service.services.group_service import (
    create_group_service,
    grant_permission_service,
    invite_member_service,
    remove_member_service,
)
from asset_service.services.member_service import get_members_service, leave_group_service


@pytest.fixture
def owner(make_user):
    return make_user("alice")


@pytest.fixture
def group(owner, make_asset, ctx):
    make_asset(owner, "Drill", 1)
    return create_group_service(GroupCreate(name="Household"), ctx(owner))


def test_invited_member_gets_baseline_permissions_and_mirrored_assets(owner, group, make_user, make_asset, ctx, count_rows):
    bob = make_user("bob")
    make_asset(bob, "Tent", 1)
    make_asset(bob, "Stove", 1)

    result = invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))

    assert result.member_added is True
    assert get_member_db(bob.id, group.id) is not None
    assert {p.name for p in get_member_permissions_db(bob.id, group.id)} == {"Read", "Read-Write"}
    assert count_rows(AssetGroupAsset, asset_group_id=group.id, user_id=bob.id) == 2


def test_invite_rejects_existing_member_and_unknown_user(owner, group, make_user, ctx):
    import uuid

    bob = make_user("bob")
    invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))

    with pytest.raises(ConflictError):
        invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))
    with pytest.raises(NotFoundError):
        invite_member_service(group.id, GroupMemberInvite(user_id=uuid.uuid4()), ctx(owner))


def test_invite_rejects_user_from_another_group(owner, group, make_user, ctx):
    carol = make_user("carol")
    create_group_service(GroupCreate(name="Carol's"), ctx(carol))

    with pytest.raises(ConflictError):
        invite_member_service(group.id, GroupMemberInvite(user_id=carol.id), ctx(owner))


def test_plain_member_cannot_invite(owner, group, make_user, ctx):
    bob = make_user("bob")
    dave = make_user("dave")
    invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))

    with pytest.raises(PermissionDeniedError):
        invite_member_service(group.id, GroupMemberInvite(user_id=dave.id), ctx(bob))


def test_remove_member_deletes_grants_membership_and_assets_only_for_that_user(
    owner, group, make_user, make_asset, ctx, count_rows
):
    bob = make_user("bob")
    for name in ("Tent", "Stove", "Lamp"):
        make_asset(bob, name, 1)
    invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))
    assert count_rows(AssetGroupMemberPermission, asset_group_id=group.id, user_id=bob.id) == 2
    assert count_rows(AssetGroupAsset, asset_group_id=group.id, user_id=bob.id) == 3

    remove_member_service(group.id, bob.id, ctx(owner))

    assert count_rows(AssetGroupMemberPermission, asset_group_id=group.id, user_id=bob.id) == 0
    assert count_rows(AssetGroupMember, asset_group_id=group.id, user_id=bob.id) == 0
    assert count_rows(AssetGroupAsset, asset_group_id=group.id, user_id=bob.id) == 0
    # Строки владельца не затронуты
    assert count_rows(AssetGroupMemberPermission, asset_group_id=group.id, user_id=owner.id) == 4
    assert count_rows(AssetGroupMember, asset_group_id=group.id, user_id=owner.id) == 1
    assert count_rows(AssetGroupAsset, asset_group_id=group.id, user_id=owner.id) == 1


def test_add_then_remove_restores_empty_state(owner, group, make_user, make_asset, ctx, count_rows):
    bob = make_user("bob")
    make_asset(bob, "Tent", 1)
    before = (
        count_rows(AssetGroupMember),
        count_rows(AssetGroupMemberPermission),
        count_rows(AssetGroupAsset),
    )

    invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))
    remove_member_service(group.id, bob.id, ctx(owner))

    after = (
        count_rows(AssetGroupMember),
        count_rows(AssetGroupMemberPermission),
        count_rows(AssetGroupAsset),
    )
    assert after == before


def test_remove_member_whose_account_was_deleted(owner, group, make_user, make_asset, ctx, count_rows):
    bob = make_user("bob")
    make_asset(bob, "Tent", 1)
    invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))
    with get_db_session() as db:
        db.query(User).filter(User.id == bob.id).update({User.deleted_at: datetime.now(timezone.utc)})

    remove_member_service(group.id, bob.id, ctx(owner))

    assert get_member_db(bob.id, group.id) is None
    assert count_rows(AssetGroupMemberPermission, user_id=bob.id) == 0
    assert count_rows(AssetGroupAsset, user_id=bob.id) == 0
    with pytest.raises(NotFoundError):
        remove_member_service(group.id, bob.id, ctx(owner))


def test_remove_member_requires_admin(owner, group, make_user, ctx):
    bob = make_user("bob")
    dave = make_user("dave")
    invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))
    invite_member_service(group.id, GroupMemberInvite(user_id=dave.id), ctx(owner))
    manage = get_permission_by_name_db("Manage")
    grant_permission_service(group.id, bob.id, manage.id, ctx(owner))

    # Manage позволяет приглашать, но не исключать
    with pytest.raises(PermissionDeniedError):
        remove_member_service(group.id, dave.id, ctx(bob))


def test_owner_cannot_be_removed_or_leave(owner, group, ctx):
    with pytest.raises(ValidationError):
        remove_member_service(group.id, owner.id, ctx(owner))
    with pytest.raises(ValidationError):
        leave_group_service(group.id, ctx(owner))


def test_member_can_leave(owner, group, make_user, ctx, count_rows):
    bob = make_user("bob")
    invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))

    leave_group_service(group.id, ctx(bob))

    assert get_member_db(bob.id, group.id) is None
    assert count_rows(AssetGroupMemberPermission, user_id=bob.id) == 0


def test_members_list_includes_member_without_permissions(owner, group, make_user, ctx):
    from asset_service.services.group_service import revoke_permission_service

    bob = make_user("bob")
    invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))
    for name in ("Read", "Read-Write"):
        revoke_permission_service(group.id, bob.id, get_permission_by_name_db(name).id, ctx(owner))

    members = {m.username: m.permissions for m in get_members_service(group.id, ctx(owner))}

    assert members["bob"] == []
    assert len(members["alice"]) == 4
