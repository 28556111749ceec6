# app/services/notification_service.py
from decimal import Decimal
from typing import Any, Dict

import requests

from app.celery_worker import celery_app
from app.data.database import SessionLocal
from app.repos.order_repo import OrderRepo
from app.services.pricing import summarize
from app.utils.retry import http_retry
from app.utils.settings import (
    APP_URL,
    BUSINESS_EMAIL,
    BUSINESS_NAME,
    EMAIL_API_KEY,
    EMAIL_API_URL,
)
from app.utils.logging import get_logger

logger = get_logger(__name__)

STATUS_MESSAGES = {
    "processing": "Your order is being processed",
    "shipped": "Your order has been shipped",
    "delivered": "Your order has been delivered",
    "cancelled": "Your order has been cancelled",
}


class NotificationService:
    """
    Serwis do wysyłania powiadomień.
    Używa Celery do asynchronicznego przetwarzania.
    Błąd kolejkowania nigdy nie wraca do wywołującego - zamówienie jest już zapisane.
    """

    @staticmethod
    def send_order_confirmation(order_id: str) -> bool:
        try:
            send_order_confirmation_task.delay(order_id)
            return True
        except Exception as e:
            logger.error(f"Could not enqueue confirmation email for order {order_id} (non-blocking): {e}")
            return False

    @staticmethod
    def send_order_status_update(order_id: str, status: str) -> bool:
        try:
            send_order_status_task.delay(order_id, status)
            return True
        except Exception as e:
            logger.error(f"Could not enqueue status email for order {order_id} (non-blocking): {e}")
            return False


def build_confirmation_payload(order) -> Dict[str, Any]:
    """Struktura maila potwierdzenia: klient, pozycje, kwoty, adres."""
    summary = summarize((item.price, item.quantity) for item in order.items)
    address = order.address

    return {
        "customer_email": order.user.email if order.user else None,
        "customer_name": order.user.name if order.user else "",
        "order_id": order.id,
        "order_date": order.created_at.strftime("%d %B %Y") if order.created_at else "",
        "items": [
            {
                "name": item.product.name if item.product else f"Product {item.product_id}",
                "quantity": item.quantity,
                "price": str(item.price),
                "image": item.product.image if item.product else None,
            }
            for item in order.items
        ],
        "subtotal": str(summary.subtotal),
        "shipping": str(summary.shipping),
        "tax": str(summary.tax),
        "total": str(Decimal(order.total_amount)),
        "shipping_address": {
            "street": address.street,
            "city": address.city,
            "state": address.state,
            "postal_code": address.postal_code,
            "country": address.country,
        } if address else None,
    }


def render_confirmation(payload: Dict[str, Any]) -> str:
    rows = "".join(
        f"<tr><td>{i['name']}</td><td>{i['quantity']}</td><td>₹{i['price']}</td></tr>"
        for i in payload["items"]
    )
    return (
        f"<h2>Hi {payload['customer_name']},</h2>"
        f"<p>Thank you for your order <strong>{payload['order_id']}</strong>.</p>"
        f"<table>{rows}</table>"
        f"<p>Subtotal: ₹{payload['subtotal']}<br/>Shipping: ₹{payload['shipping']}<br/>"
        f"Tax: ₹{payload['tax']}<br/><strong>Total: ₹{payload['total']}</strong></p>"
    )


def render_status_update(customer_name: str, order_id: str, status: str) -> str:
    message = STATUS_MESSAGES.get(status, "Your order status has been updated")
    return (
        f"<h2>Hi {customer_name},</h2>"
        f"<p>{message}.</p>"
        f"<p>Order Number: <strong>{order_id}</strong><br/>Status: <strong>{status.upper()}</strong></p>"
        f'<p><a href="{APP_URL}/orders/{order_id}">View Order Details</a></p>'
    )


@http_retry()
def _post_email(to: str, subject: str, html: str) -> Dict[str, Any]:
    resp = requests.post(
        EMAIL_API_URL,
        json={
            "from": f"{BUSINESS_NAME} <{BUSINESS_EMAIL}>",
            "to": to,
            "subject": subject,
            "html": html,
        },
        headers={"Authorization": f"Bearer {EMAIL_API_KEY}"},
        timeout=5,
    )
    resp.raise_for_status()
    return resp.json()


def deliver_email(to: str | None, subject: str, html: str) -> Dict[str, Any]:
    if not to:
        logger.warning(f"[NOTIFICATION] no recipient for '{subject}', skipped")
        return {"status": "skipped"}

    if not EMAIL_API_KEY:
        # bez klucza tylko logujemy (dev)
        logger.info(f"[NOTIFICATION] {to}: {subject}")
        return {"status": "logged"}

    data = _post_email(to, subject, html)
    logger.info(f"[NOTIFICATION] sent '{subject}' to {to}")
    return {"status": "sent", "id": data.get("id")}


@celery_app.task(name="app.services.notification_service.send_order_confirmation_task")
def send_order_confirmation_task(order_id: str):
    db = SessionLocal()
    try:
        order = OrderRepo(db).get_order_with_items(order_id)
        if not order:
            logger.warning(f"[NOTIFICATION] order {order_id} not found")
            return {"order_id": order_id, "status": "missing"}

        payload = build_confirmation_payload(order)
        result = deliver_email(
            payload["customer_email"],
            f"Order Confirmation - {order_id}",
            render_confirmation(payload),
        )
        return {"order_id": order_id, **result}
    finally:
        db.close()


@celery_app.task(name="app.services.notification_service.send_order_status_task")
def send_order_status_task(order_id: str, status: str):
    db = SessionLocal()
    try:
        order = OrderRepo(db).get_order(order_id)
        if not order:
            logger.warning(f"[NOTIFICATION] order {order_id} not found")
            return {"order_id": order_id, "status": "missing"}

        user = order.user
        result = deliver_email(
            user.email if user else None,
            f"Order Update - {order_id}",
            render_status_update(user.name if user else "", order_id, status),
        )
        return {"order_id": order_id, **result}
    finally:
        db.close()
