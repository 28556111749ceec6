# app/tasks/expire.py
from app.celery_worker import celery_app
from app.data.database import SessionLocal
from app.services.payment_service import PaymentService
from app.services.phonepe_client import PhonePeClient
from app.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="app.tasks.expire.expire_pending_orders_task")
def expire_pending_orders_task():
    logger.info("Expire pending orders task started")

    db = SessionLocal()
    try:
        counts = PaymentService(db, gateway=PhonePeClient()).reconcile_expired_orders()
        logger.info(
            f"Expire pending orders done: finalized={counts['finalized']} "
            f"cancelled={counts['cancelled']} skipped={counts['skipped']}"
        )
        return counts
    finally:
        db.close()
