from celery import Celery

from asset_service.core.config import settings

# Создаем общий экземпляр Celery
celery_app = Celery("asset_service", include=["asset_service.tasks.invitation_tasks"])
celery_app.conf.broker_url = settings.CELERY_BROKER_URL
celery_app.conf.result_backend = settings.CELERY_RESULT_BACKEND

# Периодическая очистка просроченных приглашений (celery -A asset_service.celery_app beat)
celery_app.conf.beat_schedule = {
    "delete-expired-group-invitations": {
        "task": "asset_service.tasks.delete_expired_invitations",
        "schedule": settings.INVITATION_SWEEP_INTERVAL_MINUTES * 60,
    },
}
