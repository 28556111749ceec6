# app/services/order_service.py
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.data.models.order import OrderModel, ORDER_STATUSES
from app.repos.order_repo import OrderRepo
from app.services.notification_service import NotificationService
from app.utils.logging import get_logger

logger = get_logger(__name__)

# status tylko do przodu, delivered i cancelled sa koncowe
ORDER_TRANSITIONS = {
    "pending": {"processing", "cancelled"},
    "processing": {"shipped", "cancelled"},
    "shipped": {"delivered", "cancelled"},
    "delivered": set(),
    "cancelled": set(),
}


def can_transition(current: str, new: str) -> bool:
    return new in ORDER_TRANSITIONS.get(current, set())


def order_to_dict(order: OrderModel, with_items: bool = True) -> Dict[str, Any]:
    data = {
        "id": order.id,
        "user_id": order.user_id,
        "status": order.status,
        "total_amount": order.total_amount,
        "payment_method": order.payment_method,
        "address_id": order.address_id,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }
    if with_items:
        data["items"] = [
            {
                "product_id": i.product_id,
                "color": i.color,
                "quantity": i.quantity,
                "price": i.price,
            }
            for i in order.items
        ]
        address = order.address
        data["address"] = {
            "id": address.id,
            "user_id": address.user_id,
            "street": address.street,
            "city": address.city,
            "state": address.state,
            "postal_code": address.postal_code,
            "country": address.country,
            "is_default": address.is_default,
        } if address else None
    return data


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień (odczyt + back-office).
    Finalizacja pending -> processing należy wyłącznie do PaymentService.
    """

    def __init__(self, db: Session, notification_service: NotificationService | None = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.notification_service = notification_service or NotificationService()

    def get_order(self, order_id: str, user_id: int) -> Dict[str, Any]:
        """
        Use Case: Pobranie zamówienia (Query).
        """
        order = self.repo.get_order_with_items(order_id)

        if not order:
            raise LookupError("Order not found")

        if order.user_id != user_id:
            raise PermissionError("No access to this order")

        return order_to_dict(order)

    def list_orders(self, user_id: int) -> List[Dict[str, Any]]:
        return [order_to_dict(o, with_items=False) for o in self.repo.list_orders(user_id=user_id)]

    # back-office
    def admin_list_orders(self, status: str | None = None) -> List[Dict[str, Any]]:
        if status is not None and status not in ORDER_STATUSES:
            raise ValueError(f"Unknown order status '{status}'")
        return [order_to_dict(o, with_items=False) for o in self.repo.list_orders(status=status)]

    def admin_get_order(self, order_id: str) -> Dict[str, Any]:
        order = self.repo.get_order_with_items(order_id)
        if not order:
            raise LookupError("Order not found")
        return order_to_dict(order)

    def update_status(self, order_id: str, new_status: str) -> Dict[str, Any]:
        """
        Use Case: Zmiana statusu przez admina.

        1. Status tylko do przodu wg ORDER_TRANSITIONS
        2. pending -> processing tylko przez weryfikacje platnosci
        3. Warunkowy update (where status = aktualny), konflikt -> RuntimeError
        4. Mail o zmianie statusu (async, nieblokujacy)
        """
        if new_status not in ORDER_STATUSES:
            raise ValueError(f"Unknown order status '{new_status}'")

        order = self.repo.get_order(order_id)
        if not order:
            raise LookupError("Order not found")

        current = order.status
        if current == new_status:
            return self.admin_get_order(order_id)

        if current == "pending" and new_status == "processing":
            raise ValueError("Pending orders are finalized only by payment verification")

        if not can_transition(current, new_status):
            raise ValueError(f"Cannot change order status from {current} to {new_status}")

        rowcount = self.repo.transition_status(order_id, current, {"status": new_status})
        if rowcount == 0:
            self.repo.rollback()
            raise RuntimeError("Order was modified concurrently, reload and retry")

        self.repo.commit()
        self.repo.refresh(order)

        logger.info(f"Order {order_id}: {current} -> {new_status}")
        self.notification_service.send_order_status_update(order_id, new_status)

        return self.admin_get_order(order_id)
