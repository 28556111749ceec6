# app/services/phonepe_client.py
from dataclasses import dataclass, field
from typing import Any, Dict

import requests
from requests import RequestException

from app.services.checksum import (
    PAY_ENDPOINT,
    STATUS_ENDPOINT,
    encode_payload,
    payment_checksum,
    status_checksum,
)
from app.utils.retry import http_retry
from app.utils.settings import (
    PHONEPE_HOST_URL,
    PHONEPE_MERCHANT_ID,
    PHONEPE_SALT_INDEX,
    PHONEPE_SALT_KEY,
    PHONEPE_TIMEOUT_SECONDS,
)
from app.utils.logging import get_logger

logger = get_logger(__name__)

PAYMENT_SUCCESS = "PAYMENT_SUCCESS"

# status to odczyt, mozna ponawiac; pay tworzy transakcje
STATUS_ATTEMPTS = 3
PAY_ATTEMPTS = 1


class PaymentGatewayError(RuntimeError):
    """Brak odpowiedzi albo nieczytelna odpowiedz od bramki."""


@dataclass
class GatewayResult:
    success: bool
    code: str
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def paid(self) -> bool:
        return self.success and self.code == PAYMENT_SUCCESS

    @property
    def redirect_url(self) -> str | None:
        info = (self.data.get("instrumentResponse") or {}).get("redirectInfo") or {}
        return info.get("url")


class PhonePeClient:
    def __init__(
        self,
        host_url: str | None = None,
        merchant_id: str | None = None,
        salt_key: str | None = None,
        salt_index: int | None = None,
        timeout: int = PHONEPE_TIMEOUT_SECONDS,
    ):
        self.host_url = (host_url or PHONEPE_HOST_URL).rstrip("/")
        self.merchant_id = merchant_id or PHONEPE_MERCHANT_ID
        self.salt_key = salt_key if salt_key is not None else PHONEPE_SALT_KEY
        self.salt_index = salt_index if salt_index is not None else PHONEPE_SALT_INDEX
        self.timeout = timeout

    def initiate(self, payload: Dict[str, Any]) -> GatewayResult:
        base64_payload = encode_payload(payload)
        headers = {
            "Content-Type": "application/json",
            "X-VERIFY": self._sign(payment_checksum, base64_payload),
            "accept": "application/json",
        }
        url = f"{self.host_url}{PAY_ENDPOINT}"
        logger.info(f"PhonePe POST {url} txn={payload.get('merchantTransactionId')}")

        body = self._call(
            lambda: requests.post(
                url, json={"request": base64_payload}, headers=headers, timeout=self.timeout
            ),
            attempts=PAY_ATTEMPTS,
        )
        return self._to_result(body)

    def check_status(self, merchant_transaction_id: str) -> GatewayResult:
        headers = {
            "Content-Type": "application/json",
            "X-VERIFY": self._sign(status_checksum, self.merchant_id, merchant_transaction_id),
            "X-MERCHANT-ID": self.merchant_id,
            "accept": "application/json",
        }
        url = f"{self.host_url}{STATUS_ENDPOINT}/{self.merchant_id}/{merchant_transaction_id}"
        logger.info(f"PhonePe GET {url}")

        body = self._call(lambda: requests.get(url, headers=headers, timeout=self.timeout))
        result = self._to_result(body)
        logger.info(f"PhonePe status txn={merchant_transaction_id}: {result.code}")
        return result

    def _sign(self, checksum_fn, *parts) -> str:
        # bez poprawnego podpisu nie wysylamy nic do bramki
        try:
            return checksum_fn(*parts, self.salt_key, self.salt_index)
        except ValueError as e:
            raise PaymentGatewayError(f"Cannot sign provider request: {e}") from e

    def _call(self, send, attempts: int = STATUS_ATTEMPTS) -> Dict[str, Any]:
        try:
            resp = http_retry(attempts)(send)()
        except RequestException as e:
            logger.error(f"PhonePe request failed: {e}")
            raise PaymentGatewayError(f"Payment provider unreachable: {e}") from e

        # bramka zwraca json takze przy 4xx (np. PAYMENT_ERROR), wiec nie raise_for_status
        try:
            body = resp.json()
        except ValueError as e:
            raise PaymentGatewayError(
                f"Payment provider returned non-JSON response (HTTP {resp.status_code})"
            ) from e

        if not isinstance(body, dict):
            raise PaymentGatewayError("Payment provider returned unexpected body")
        return body

    @staticmethod
    def _to_result(body: Dict[str, Any]) -> GatewayResult:
        return GatewayResult(
            success=bool(body.get("success")),
            code=str(body.get("code") or "UNKNOWN"),
            data=body.get("data") or {},
        )
