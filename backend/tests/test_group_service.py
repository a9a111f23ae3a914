import pytest
from sqlalchemy.exc import OperationalError

from asset_service.core.exceptions import (
    ConflictError,
    InfrastructureError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from asset_service.models.base import (
    AssetGroup,
    AssetGroupAsset,
    AssetGroupMember,
    AssetGroupMemberPermission,
)
from asset_service.repositories.group_repository import get_group_by_id_db
from asset_service.repositories.permission_repository import get_member_permissions_db, get_permission_by_name_db
from asset_service.schemas.group_schemas import GroupCreate, GroupMemberInvite, GroupUpdate
from asset_service.services.group_service import (
    create_group_service,
    delete_group_service,
    get_group_detail_service,
    grant_permission_service,
    invite_member_service,
    list_group_assets_service,
    rename_group_service,
)


@pytest.fixture
def owner(make_user):
    return make_user("alice")


@pytest.fixture
def group(owner, ctx):
    return create_group_service(GroupCreate(name="Household", description="Home"), ctx(owner))


def test_create_group_seeds_permissions_membership_and_assets(owner, make_asset, ctx, count_rows):
    a1 = make_asset(owner, "Drill", 1)
    a2 = make_asset(owner, "Ladder", 2)

    group = create_group_service(GroupCreate(name="Household"), ctx(owner))

    assert get_group_by_id_db(group.id).owner_user_id == owner.id
    names = {p.name for p in get_member_permissions_db(owner.id, group.id)}
    assert names == {"Admin", "Manage", "Read-Write", "Read"}
    assert count_rows(AssetGroupMember, asset_group_id=group.id, user_id=owner.id) == 1
    assert count_rows(AssetGroupAsset, asset_group_id=group.id, asset_id=a1.id) == 1
    assert count_rows(AssetGroupAsset, asset_group_id=group.id, asset_id=a2.id) == 1


def test_create_group_rejects_blank_name(owner, ctx, count_rows):
    with pytest.raises(ValidationError):
        create_group_service(GroupCreate(name="   "), ctx(owner))
    assert count_rows(AssetGroup) == 0


def test_create_group_rejects_user_already_in_group(owner, group, ctx):
    with pytest.raises(ConflictError):
        create_group_service(GroupCreate(name="Second"), ctx(owner))


def test_create_group_rolls_back_when_mirroring_fails(owner, make_asset, ctx, count_rows, audit_count, monkeypatch):
    make_asset(owner, "Drill", 1)
    audit_before = audit_count()

    def broken_mirror(*args, **kwargs):
        raise OperationalError("INSERT INTO asset_group_asset", {}, Exception("connection lost"))

    monkeypatch.setattr("asset_service.repositories.group_repository.mirror_owner_assets", broken_mirror)

    with pytest.raises(InfrastructureError):
        create_group_service(GroupCreate(name="Household"), ctx(owner))

    assert count_rows(AssetGroup) == 0
    assert count_rows(AssetGroupMember) == 0
    assert count_rows(AssetGroupMemberPermission) == 0
    assert audit_count() == audit_before


def test_rename_requires_admin_or_manage(owner, group, make_user, ctx):
    bob = make_user("bob")
    invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))

    with pytest.raises(PermissionDeniedError):
        rename_group_service(group.id, GroupUpdate(name="Bob's"), ctx(bob))

    renamed = rename_group_service(group.id, GroupUpdate(name="Family"), ctx(owner))
    assert renamed.name == "Family"


def test_group_detail_lists_members_with_permissions(owner, group, make_user, ctx):
    bob = make_user("bob")
    invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))

    detail = get_group_detail_service(group.id, ctx(bob))

    assert detail.owner_name == "Alice"
    members = {m.username: {p.permission_name for p in m.permissions} for m in detail.members}
    assert members["alice"] == {"Admin", "Manage", "Read-Write", "Read"}
    assert members["bob"] == {"Read-Write", "Read"}


def test_group_detail_denied_to_non_member(group, make_user, ctx):
    outsider = make_user("eve")
    with pytest.raises(PermissionDeniedError):
        get_group_detail_service(group.id, ctx(outsider))


def test_list_group_assets_includes_mirrored_member_assets(owner, group, make_user, make_asset, ctx):
    bob = make_user("bob")
    make_asset(bob, "Tent", 4)
    invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))

    assets = list_group_assets_service(group.id, ctx(owner))

    assert [(a.name, a.latest_quantity, a.owner_name) for a in assets] == [("Tent", 4, "Bob")]


def test_delete_group_by_non_owner_admin_is_rolled_back(owner, group, make_user, ctx, count_rows):
    bob = make_user("bob")
    invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))
    admin = get_permission_by_name_db("Admin")
    grant_permission_service(group.id, bob.id, admin.id, ctx(owner))

    with pytest.raises(PermissionDeniedError):
        delete_group_service(group.id, ctx(bob))

    assert get_group_by_id_db(group.id) is not None
    assert count_rows(AssetGroupMember, asset_group_id=group.id) == 2
    assert count_rows(AssetGroupMemberPermission, asset_group_id=group.id) == 7


def test_delete_group_by_owner_cascades(owner, group, make_user, make_asset, ctx, count_rows):
    make_asset(owner, "Drill", 1)
    bob = make_user("bob")
    invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))

    delete_group_service(group.id, ctx(owner))

    assert get_group_by_id_db(group.id) is None
    assert count_rows(AssetGroup, id=group.id) == 1  # строка осталась, помечена удалённой
    assert count_rows(AssetGroupMember, asset_group_id=group.id) == 0
    assert count_rows(AssetGroupMemberPermission, asset_group_id=group.id) == 0
    assert count_rows(AssetGroupAsset, asset_group_id=group.id) == 0

    # После удаления владелец может создать новую группу
    create_group_service(GroupCreate(name="Fresh start"), ctx(owner))


def test_delete_missing_group(owner, ctx):
    import uuid

    with pytest.raises(NotFoundError):
        delete_group_service(uuid.uuid4(), ctx(owner))
