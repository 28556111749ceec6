# app/celery_worker.py
from celery import Celery

from app.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND, CELERY_TASK_ALWAYS_EAGER

celery_app = Celery(
    "store",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAŻNE: Explicite importuj taski, żeby Celery je zarejestrował
celery_app.conf.imports = (
    "app.tasks.expire",
    "app.services.notification_service",
)

# Konfiguracja beat schedule
celery_app.conf.beat_schedule = {
    "expire-pending-orders-every-minute": {
        "task": "app.tasks.expire.expire_pending_orders_task",
        "schedule": 60.0,  # co 60 sekund
    },
}

celery_app.conf.timezone = "UTC"
celery_app.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER
