import logging

from asset_service.celery_app import celery_app
from asset_service.services.invitation_service import sweep_expired_invitations_service

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="asset_service.tasks.delete_expired_invitations")
def delete_expired_invitations_task(self):
    """Удаляет приглашения в группы с истёкшим сроком."""
    try:
        deleted = sweep_expired_invitations_service()
        return {"status": "completed", "deleted": deleted}
    except Exception as exc:
        logger.error(f"Expired invitation sweep failed: {exc}", exc_info=True)
        self.update_state(
            state="FAILURE",
            meta={"exc_type": type(exc).__name__, "exc_message": str(exc)},
        )
        raise exc
