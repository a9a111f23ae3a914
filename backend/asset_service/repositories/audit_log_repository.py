import json
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from asset_service.core.constants import AuditAction
from asset_service.core.database import get_db_session
from asset_service.models.base import AssetAuditLog


def model_to_dict(instance) -> dict:
    """Снимок колонок ORM-объекта (для old_data/new_data аудита)."""
    mapper = inspect(instance).mapper
    return {attr.key: getattr(instance, attr.key) for attr in mapper.column_attrs}


def _dump(data: Optional[dict]) -> Optional[str]:
    if data is None:
        return None
    return json.dumps(data, default=str, sort_keys=True)


def _append(
    db: Session,
    table_name: str,
    action: AuditAction,
    old_data: Optional[dict],
    new_data: Optional[dict],
    performed_by: Optional[str],
) -> AssetAuditLog:
    # Пишем в той же транзакции, что и основное изменение: откат убирает и запись аудита
    entry = AssetAuditLog(
        table_name=table_name,
        action=action.value,
        old_data=_dump(old_data),
        new_data=_dump(new_data),
        performed_at=datetime.now(timezone.utc),
        performed_by=performed_by,
    )
    db.add(entry)
    db.flush()
    return entry


def after_create(db: Session, instance, performed_by: Optional[str]) -> AssetAuditLog:
    return _append(
        db, instance.__tablename__, AuditAction.CREATE, None, model_to_dict(instance), performed_by
    )


def after_update(db: Session, old_data: dict, instance, performed_by: Optional[str]) -> AssetAuditLog:
    return _append(
        db, instance.__tablename__, AuditAction.UPDATE, old_data, model_to_dict(instance), performed_by
    )


def after_delete(db: Session, instance, performed_by: Optional[str]) -> AssetAuditLog:
    return _append(
        db, instance.__tablename__, AuditAction.DELETE, model_to_dict(instance), None, performed_by
    )


def after_create_rows(
    db: Session, table_name: str, rows: List[dict], performed_by: Optional[str]
) -> AssetAuditLog:
    """Аудит пакетной вставки (гранты, зеркала активов)."""
    return _append(db, table_name, AuditAction.CREATE, None, {"rows": rows}, performed_by)


def after_delete_rows(
    db: Session, table_name: str, rows: List[dict], performed_by: Optional[str]
) -> AssetAuditLog:
    """Аудит пакетного удаления (гранты, участники, зеркала активов)."""
    return _append(db, table_name, AuditAction.DELETE, {"rows": rows}, None, performed_by)


def get_audit_logs_db(table_name: Optional[str] = None, limit: int = 100) -> List[AssetAuditLog]:
    with get_db_session() as db:
        query = db.query(AssetAuditLog)
        if table_name:
            query = query.filter(AssetAuditLog.table_name == table_name)
        return query.order_by(AssetAuditLog.id.asc()).limit(limit).all()
