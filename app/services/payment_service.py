# app/services/payment_service.py
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel, PendingOrderItemModel
from app.repos.address_repo import AddressRepo
from app.repos.cart_repo import CartRepo
from app.repos.order_repo import OrderRepo
from app.repos.user_repo import UserRepo
from app.services.cart_service import aggregate_lines
from app.services.checksum import decode_payload, verify_callback_checksum
from app.services.lock_service import LockService
from app.services.notification_service import NotificationService
from app.services.phonepe_client import PaymentGatewayError, PhonePeClient
from app.services.pricing import summarize, to_minor_units
from app.utils.settings import (
    API_URL,
    APP_URL,
    CHECKOUT_LOCK_TTL_SECONDS,
    PENDING_ORDER_TTL_SECONDS,
    PHONEPE_SALT_INDEX,
    PHONEPE_SALT_KEY,
)
from app.utils.logging import get_logger

logger = get_logger(__name__)

MOBILE_RE = re.compile(r"[0-9]{10}")
PAYMENT_METHOD = "phonepe"
# tylko te kody znacza ze platnosci na pewno nie bedzie, reszta (PAYMENT_PENDING,
# INTERNAL_SERVER_ERROR, AUTHORIZATION_FAILED, UNKNOWN...) czeka na kolejny przebieg
PROVIDER_DECLINED_CODES = {"PAYMENT_ERROR", "PAYMENT_DECLINED", "TIMED_OUT", "TRANSACTION_NOT_FOUND"}


class VerificationResult(str, Enum):
    SUCCESS = "success"
    ALREADY_FINALIZED = "already_finalized"
    MISSING_PARAMETERS = "missing_parameters"
    PROVIDER_FAILURE = "provider_failure"
    ORDER_NOT_FOUND = "order_not_found"
    TRANSACTION_MISMATCH = "transaction_mismatch"
    ORDER_CANCELLED = "order_cancelled"
    EMPTY_CART = "empty_cart"


def success_url(order_id: str) -> str:
    return f"{APP_URL}/order-success?{urlencode({'orderId': order_id})}"


def failure_url(order_id: str | None = None, error: str | None = None, reason: str | None = None) -> str:
    params = {
        key: value
        for key, value in (("orderId", order_id), ("error", error), ("reason", reason))
        if value
    }
    query = urlencode(params)
    return f"{APP_URL}/payment-failed" + (f"?{query}" if query else "")


@dataclass
class VerificationOutcome:
    result: VerificationResult
    order_id: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.result in (VerificationResult.SUCCESS, VerificationResult.ALREADY_FINALIZED)

    @property
    def redirect_url(self) -> str:
        if self.ok:
            return success_url(self.order_id)
        return failure_url(self.order_id, self.error)


def generate_transaction_id() -> str:
    return f"MT{uuid.uuid4().hex[:30].upper()}"


class PaymentService:
    """
    Uzgadnianie zamowienia z platnoscia:
    koszyk -> pending order (+ snapshot) -> bramka -> weryfikacja -> processing.

    Jedyne przejscie pending -> processing robi finalize_paid_order,
    warunkowym updatem, wiec powtorzone wywolania nic nie dublują.
    """

    def __init__(
        self,
        db: Session,
        gateway: PhonePeClient,
        lock_service: LockService | None = None,
        notification_service: NotificationService | None = None,
    ):
        self.db = db
        self.orders = OrderRepo(db)
        self.carts = CartRepo(db)
        self.addresses = AddressRepo(db)
        self.users = UserRepo(db)
        self.gateway = gateway
        self.lock_service = lock_service
        self.notification_service = notification_service or NotificationService()

    # =====================================================
    # INITIATION
    # =====================================================
    def initiate_payment(
        self,
        user_id: int,
        address_id: int | None,
        mobile_number: str | None,
        amount: Decimal | None = None,
    ) -> Dict[str, Any]:
        """
        Use Case: Inicjacja platnosci.

        1. Walidacja (adres, telefon, koszyk, kwota liczona po stronie serwera)
        2. Lock checkoutu usera w redis
        3. Order pending + snapshot pozycji w jednym commicie
        4. Podpisany payload do bramki, zwracamy redirect url
        Blad bramki zostawia order w pending (sprzata go sweep).
        """
        if not address_id:
            raise ValueError("No address selected")

        if not mobile_number or not MOBILE_RE.fullmatch(mobile_number):
            raise ValueError("Invalid mobile number")

        if not self.users.get_user(user_id):
            raise LookupError("User not found")

        cart_items = self.carts.get_cart_items(user_id)
        if not cart_items:
            raise ValueError("Cart is empty")

        if not self.addresses.get_user_address(address_id, user_id):
            raise ValueError("Invalid address")

        prices = {item.product_id: item.product.price for item in cart_items}
        lines = aggregate_lines(cart_items)
        summary = summarize((prices[pid], qty) for pid, _, qty in lines)

        if amount is not None and Decimal(str(amount)).quantize(Decimal("0.01")) != summary.total:
            logger.warning(
                f"Amount mismatch for user {user_id}: client {amount}, server {summary.total}"
            )
            raise ValueError("Amount mismatch")

        token = None
        if self.lock_service is not None:
            token = self.lock_service.acquire_checkout_lock(user_id, CHECKOUT_LOCK_TTL_SECONDS)
            if not token:
                raise RuntimeError("Payment initiation already in progress")

        try:
            order = self._create_pending_order(user_id, address_id, lines, prices, summary.total)
            return self._request_redirect(order, mobile_number)
        finally:
            if token is not None:
                try:
                    self.lock_service.release_checkout_lock(user_id, token)
                except Exception as e:
                    # lock i tak wygasnie po TTL
                    logger.warning(f"Failed to release checkout lock for user {user_id}: {e}")

    def _create_pending_order(self, user_id, address_id, lines, prices, total) -> OrderModel:
        txn = generate_transaction_id()
        now = datetime.now(timezone.utc)

        order = self.orders.add_order(
            OrderModel(
                id=str(uuid.uuid4()),
                user_id=user_id,
                address_id=address_id,
                status="pending",
                total_amount=total,
                payment_method=f"{PAYMENT_METHOD}:{txn}",
                merchant_transaction_id=txn,
                expires_at=now + timedelta(seconds=PENDING_ORDER_TTL_SECONDS),
            )
        )

        for product_id, color, quantity in lines:
            self.orders.add_pending_item(
                PendingOrderItemModel(
                    order_id=order.id,
                    product_id=product_id,
                    color=color,
                    quantity=quantity,
                    price=prices[product_id],
                )
            )

        self.orders.commit()
        logger.info(f"Order {order.id} created pending, total {total}, txn {txn}")
        return order

    def _request_redirect(self, order: OrderModel, mobile_number: str) -> Dict[str, Any]:
        payload = {
            "merchantId": self.gateway.merchant_id,
            "merchantTransactionId": order.merchant_transaction_id,
            "merchantUserId": f"U{order.user_id}",
            "amount": to_minor_units(order.total_amount),
            "redirectUrl": f"{API_URL}/api/payment/phonepe/callback?{urlencode({'orderId': order.id})}",
            "redirectMode": "REDIRECT",
            "mobileNumber": mobile_number,
            "paymentInstrument": {"type": "PAY_PAGE"},
        }

        try:
            result = self.gateway.initiate(payload)
        except PaymentGatewayError:
            logger.error(f"Payment initiation failed for order {order.id}, order left pending")
            raise

        if not result.success or not result.redirect_url:
            logger.error(
                f"Payment initiation rejected for order {order.id}: {result.code}, order left pending"
            )
            raise PaymentGatewayError("Failed to initiate payment")

        return {
            "redirect_url": result.redirect_url,
            "merchant_transaction_id": order.merchant_transaction_id,
            "order_id": order.id,
        }

    # =====================================================
    # CALLBACK / VERIFICATION
    # =====================================================
    def handle_callback(self, order_id: str | None) -> str:
        """Powrot przegladarki z bramki: sprawdz status i przekieruj na verify."""
        if not order_id:
            return failure_url(error="Missing order ID")

        order = self.orders.get_order(order_id)
        if not order:
            logger.error(f"Callback for unknown order {order_id}")
            return failure_url(error="Order not found")

        txn = order.merchant_transaction_id
        if not txn:
            return failure_url(error="Invalid transaction")

        try:
            status = self.gateway.check_status(txn)
        except PaymentGatewayError:
            return failure_url(error="Callback processing failed")

        if status.paid:
            query = urlencode({"orderId": order_id, "transactionId": txn})
            return f"{API_URL}/api/payment/phonepe/verify?{query}"

        logger.info(f"Payment for order {order_id} not successful: {status.code}")
        return failure_url(order_id, reason=status.code)

    def verify_payment(self, order_id: str | None, transaction_id: str | None) -> VerificationOutcome:
        """
        Use Case: Weryfikacja platnosci (jedyne autorytatywne przejscie).

        Parametry z query to tylko klucze do wyszukania, o sukcesie
        decyduje zawsze swiezy status z bramki.
        """
        if not order_id or not transaction_id:
            return VerificationOutcome(VerificationResult.MISSING_PARAMETERS, error="Missing parameters")

        try:
            status = self.gateway.check_status(transaction_id)
        except PaymentGatewayError as e:
            logger.error(f"Status check failed for order {order_id}: {e}")
            return VerificationOutcome(VerificationResult.PROVIDER_FAILURE, order_id)

        if not status.paid:
            logger.info(f"Order {order_id} not paid ({status.code}), stays pending")
            return VerificationOutcome(VerificationResult.PROVIDER_FAILURE, order_id)

        return self.finalize_paid_order(order_id, transaction_id)

    def finalize_paid_order(self, order_id: str, transaction_id: str) -> VerificationOutcome:
        """
        pending -> processing dokladnie raz.
        Wolac tylko po potwierdzeniu PAYMENT_SUCCESS w bramce.
        """
        order = self.orders.get_order(order_id)
        if not order:
            return VerificationOutcome(VerificationResult.ORDER_NOT_FOUND, error="Order not found")

        if order.merchant_transaction_id != transaction_id:
            logger.warning(
                f"Transaction {transaction_id} does not belong to order {order_id}"
            )
            return VerificationOutcome(
                VerificationResult.TRANSACTION_MISMATCH, order_id, "Invalid transaction"
            )

        outcome = self._already_handled(order)
        if outcome:
            return outcome

        snapshot = self.orders.get_pending_items(order.id)
        if not snapshot:
            logger.error(f"Order {order_id} has no item snapshot, stays pending")
            return VerificationOutcome(VerificationResult.EMPTY_CART, order_id, "Cart is empty")

        try:
            # warunkowy update: where id = ? and status = 'pending'
            rowcount = self.orders.transition_status(
                order.id,
                "pending",
                {"status": "processing", "payment_method": PAYMENT_METHOD},
            )

            if rowcount == 0:
                self.orders.rollback()
                self.orders.refresh(order)
                logger.info(f"Order {order_id} finalized by a concurrent request")
                return self._already_handled(order) or VerificationOutcome(
                    VerificationResult.ALREADY_FINALIZED, order_id
                )

            for line in snapshot:
                self.orders.add_order_item(
                    OrderItemModel(
                        order_id=order.id,
                        product_id=line.product_id,
                        color=line.color,
                        quantity=line.quantity,
                        price=line.price,
                    )
                )

            self._remove_ordered_lines(order.user_id, snapshot)
            self.orders.commit()
        except Exception:
            self.orders.rollback()
            raise

        self.orders.refresh(order)
        logger.info(f"Order {order_id} pending -> processing, {len(snapshot)} items")

        self.notification_service.send_order_confirmation(order.id)

        return VerificationOutcome(VerificationResult.SUCCESS, order_id)

    def _already_handled(self, order: OrderModel) -> VerificationOutcome | None:
        if order.status == "cancelled":
            logger.warning(
                f"Paid transaction {order.merchant_transaction_id} for cancelled order {order.id}, needs refund"
            )
            return VerificationOutcome(VerificationResult.ORDER_CANCELLED, order.id, "Order cancelled")
        if order.status != "pending":
            logger.info(f"Order {order.id} already processed ({order.status})")
            return VerificationOutcome(VerificationResult.ALREADY_FINALIZED, order.id)
        return None

    def _remove_ordered_lines(self, user_id: int, snapshot) -> None:
        # z koszyka znika dokladnie to co kupiono, rzeczy dodane w trakcie platnosci zostaja
        for line in snapshot:
            cart_line = self.carts.get_cart_line(user_id, line.product_id, line.color)
            if not cart_line:
                continue
            if cart_line.quantity > line.quantity:
                cart_line.quantity -= line.quantity
            else:
                self.carts.delete_cart_item(cart_line)

    # =====================================================
    # WEBHOOK (server-to-server)
    # =====================================================
    def handle_webhook(self, base64_response: str, x_verify: str | None) -> VerificationOutcome:
        if not verify_callback_checksum(base64_response, x_verify or "", PHONEPE_SALT_KEY, PHONEPE_SALT_INDEX):
            raise PermissionError("Invalid callback signature")

        body = decode_payload(base64_response)
        data = body.get("data") or {}
        txn = data.get("merchantTransactionId") or body.get("merchantTransactionId")
        if not txn:
            raise ValueError("Callback payload has no merchantTransactionId")

        order = self.orders.get_by_transaction_id(txn)
        if not order:
            logger.error(f"Webhook for unknown transaction {txn}")
            return VerificationOutcome(VerificationResult.ORDER_NOT_FOUND, error="Order not found")

        # tresc webhooka to tylko klucz, status i tak pytamy bramke
        return self.verify_payment(order.id, txn)

    # =====================================================
    # SWEEP
    # =====================================================
    def reconcile_expired_orders(self, now: datetime | None = None) -> Dict[str, int]:
        """
        Pending po TTL: zaplacone -> finalizacja, niezaplacone -> cancelled,
        bramka niedostepna -> zostaw do nastepnego przebiegu.
        """
        now = now or datetime.now(timezone.utc)
        counts = {"finalized": 0, "cancelled": 0, "skipped": 0}

        expired = self.orders.list_expired_pending(now)
        logger.info(f"Found {len(expired)} expired pending orders")

        for order in expired:
            txn = order.merchant_transaction_id

            if txn:
                try:
                    status = self.gateway.check_status(txn)
                except PaymentGatewayError as e:
                    logger.warning(f"Status check for expired order {order.id} failed: {e}")
                    counts["skipped"] += 1
                    continue

                if status.paid:
                    outcome = self.finalize_paid_order(order.id, txn)
                    if outcome.result == VerificationResult.SUCCESS:
                        counts["finalized"] += 1
                    else:
                        logger.error(f"Expired paid order {order.id} not finalized: {outcome.result.value}")
                        counts["skipped"] += 1
                    continue

                if status.code not in PROVIDER_DECLINED_CODES:
                    logger.info(f"Expired order {order.id} left pending, provider status {status.code}")
                    counts["skipped"] += 1
                    continue

            rowcount = self.orders.transition_status(order.id, "pending", {"status": "cancelled"})
            self.orders.commit()
            if rowcount:
                logger.info(f"Order {order.id} expired, pending -> cancelled")
                counts["cancelled"] += 1
            else:
                counts["skipped"] += 1

        return counts
