import json

import pytest
from sqlalchemy.exc import OperationalError

from asset_service.core.exceptions import ConflictError, InfrastructureError
from asset_service.repositories.audit_log_repository import get_audit_logs_db
from asset_service.repositories.permission_repository import get_permission_by_name_db
from asset_service.schemas.group_schemas import GroupCreate, GroupMemberInvite
from asset_service.services.group_service import (
    create_group_service,
    grant_permission_service,
    invite_member_service,
    remove_member_service,
)


@pytest.fixture
def owner(make_user):
    return make_user("alice")


def test_group_creation_is_audited(owner, make_asset, ctx):
    make_asset(owner, "Drill", 1)
    group = create_group_service(GroupCreate(name="Household"), ctx(owner))

    tables = [e.table_name for e in get_audit_logs_db() if e.performed_by == owner.client_id]
    for table in ("asset_group", "asset_group_member_permission", "asset_group_member", "asset_group_asset"):
        assert table in tables

    created = json.loads(get_audit_logs_db("asset_group")[0].new_data)
    assert created["id"] == str(group.id)
    assert created["name"] == "Household"


def test_member_removal_is_audited_as_delete(owner, make_user, ctx):
    group = create_group_service(GroupCreate(name="Household"), ctx(owner))
    bob = make_user("bob")
    invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))

    remove_member_service(group.id, bob.id, ctx(owner))

    deletes = [e for e in get_audit_logs_db("asset_group_member") if e.action == "DELETE"]
    assert len(deletes) == 1
    assert json.loads(deletes[0].old_data)["user_id"] == str(bob.id)
    assert deletes[0].new_data is None


def test_repeated_failed_grant_leaves_no_audit_rows(owner, make_user, ctx, audit_count):
    group = create_group_service(GroupCreate(name="Household"), ctx(owner))
    bob = make_user("bob")
    invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))
    read = get_permission_by_name_db("Read")
    before = audit_count()

    for _ in range(3):
        with pytest.raises(ConflictError):
            grant_permission_service(group.id, bob.id, read.id, ctx(owner))

    assert audit_count() == before


def test_audit_write_failure_rolls_back_mutation(owner, make_user, ctx, count_rows, monkeypatch):
    from asset_service.models.base import AssetGroupMember

    group = create_group_service(GroupCreate(name="Household"), ctx(owner))
    bob = make_user("bob")

    def broken_audit(*args, **kwargs):
        raise OperationalError("INSERT INTO asset_audit_log", {}, Exception("disk full"))

    monkeypatch.setattr("asset_service.repositories.audit_log_repository.after_create", broken_audit)

    with pytest.raises(InfrastructureError):
        invite_member_service(group.id, GroupMemberInvite(user_id=bob.id), ctx(owner))

    assert count_rows(AssetGroupMember, user_id=bob.id) == 0
