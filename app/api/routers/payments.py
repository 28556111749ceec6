# app/api/routers/payments.py
from fastapi import APIRouter, Depends, Header, HTTPException, Query
from fastapi.responses import RedirectResponse
from redis import RedisError
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.domain.schemas import PaymentInitiateIn, PaymentInitiateOut, WebhookIn, WebhookOut
from app.services.lock_service import LockService
from app.services.payment_service import PaymentService, failure_url
from app.services.phonepe_client import PaymentGatewayError, PhonePeClient
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/payment/phonepe", tags=["payments"])


def get_gateway() -> PhonePeClient:
    return PhonePeClient()


def get_lock_service() -> LockService:
    return LockService()


def get_service(
    db: Session = Depends(get_db),
    gateway: PhonePeClient = Depends(get_gateway),
    lock_service: LockService = Depends(get_lock_service),
) -> PaymentService:
    return PaymentService(db, gateway=gateway, lock_service=lock_service)


@router.post("/initiate", response_model=PaymentInitiateOut)
def initiate_payment(
    payload: PaymentInitiateIn,
    user_id: int = Query(...),
    svc: PaymentService = Depends(get_service),
):
    try:
        return svc.initiate_payment(
            user_id=user_id,
            address_id=payload.address_id,
            mobile_number=payload.mobile_number,
            amount=payload.amount,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PaymentGatewayError as e:
        logger.error(f"Payment initiation failed for user {user_id}: {e}")
        raise HTTPException(status_code=502, detail="Failed to initiate payment")
    except RedisError as e:
        # bez locka nie wpuszczamy checkoutu, inaczej podwojne zamowienia
        logger.error(f"Checkout lock unavailable for user {user_id}: {e}")
        raise HTTPException(status_code=503, detail="Checkout temporarily unavailable")
    except RuntimeError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/callback")
def payment_callback(
    order_id: str | None = Query(None, alias="orderId"),
    svc: PaymentService = Depends(get_service),
):
    try:
        return RedirectResponse(svc.handle_callback(order_id))
    except Exception:
        logger.exception(f"PhonePe callback error for order {order_id}")
        return RedirectResponse(failure_url(error="Callback processing failed"))


@router.get("/verify")
def verify_payment(
    order_id: str | None = Query(None, alias="orderId"),
    transaction_id: str | None = Query(None, alias="transactionId"),
    svc: PaymentService = Depends(get_service),
):
    """
    Autorytatywne przejscie pending -> processing, zawsze konczy sie przekierowaniem.
    """
    try:
        outcome = svc.verify_payment(order_id, transaction_id)
    except Exception:
        logger.exception(f"PhonePe verification error for order {order_id}")
        return RedirectResponse(failure_url(order_id, error="Verification failed"))

    logger.info(f"Verification of order {order_id}: {outcome.result.value}")
    return RedirectResponse(outcome.redirect_url)


@router.post("/webhook", response_model=WebhookOut)
def payment_webhook(
    payload: WebhookIn,
    x_verify: str | None = Header(None, alias="X-VERIFY"),
    svc: PaymentService = Depends(get_service),
):
    try:
        outcome = svc.handle_webhook(payload.response, x_verify)
    except PermissionError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"outcome": outcome.result.value, "order_id": outcome.order_id}
