# app/services/checksum.py
"""
X-VERIFY podpisy dla PhonePe.

Format: sha256(payload + salt_key) + "###" + salt_index
"""
import base64
import hashlib
import hmac
import json
from typing import Any, Dict

PAY_ENDPOINT = "/pg/v1/pay"
STATUS_ENDPOINT = "/pg/v1/status"


def generate_checksum(payload: str, salt_key: str, salt_index: int) -> str:
    if not isinstance(payload, str) or not payload:
        raise ValueError("Checksum payload must be a non-empty string")
    if not salt_key:
        raise ValueError("Salt key is not configured")

    digest = hashlib.sha256((payload + salt_key).encode("utf-8")).hexdigest()
    return f"{digest}###{salt_index}"


def encode_payload(payload: Dict[str, Any]) -> str:
    raw = json.dumps(payload, separators=(",", ":"))
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_payload(base64_payload: str) -> Dict[str, Any]:
    try:
        raw = base64.b64decode(base64_payload, validate=True)
        body = json.loads(raw.decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as e:
        raise ValueError(f"Malformed provider payload: {e}") from e

    if not isinstance(body, dict):
        raise ValueError("Malformed provider payload: expected a JSON object")
    return body


def payment_checksum(base64_payload: str, salt_key: str, salt_index: int) -> str:
    if not base64_payload:
        raise ValueError("Checksum payload must be a non-empty string")
    return generate_checksum(base64_payload + PAY_ENDPOINT, salt_key, salt_index)


def status_checksum(
    merchant_id: str,
    merchant_transaction_id: str,
    salt_key: str,
    salt_index: int,
) -> str:
    if not merchant_id or not merchant_transaction_id:
        raise ValueError("Merchant id and transaction id are required")
    path = f"{STATUS_ENDPOINT}/{merchant_id}/{merchant_transaction_id}"
    return generate_checksum(path, salt_key, salt_index)


def verify_callback_checksum(
    base64_response: str,
    received_checksum: str,
    salt_key: str,
    salt_index: int,
) -> bool:
    if not base64_response or not received_checksum:
        return False
    expected = generate_checksum(base64_response, salt_key, salt_index)
    return hmac.compare_digest(expected, received_checksum)
