import base64
import hashlib
import json

import pytest

from app.services.checksum import (
    decode_payload,
    encode_payload,
    generate_checksum,
    payment_checksum,
    status_checksum,
    verify_callback_checksum,
)


def test_generate_checksum_format():
    expected = hashlib.sha256(b"payloadsalt").hexdigest() + "###1"
    assert generate_checksum("payload", "salt", 1) == expected


def test_generate_checksum_is_deterministic_and_secret_dependent():
    assert generate_checksum("abc", "k1", 1) == generate_checksum("abc", "k1", 1)
    assert generate_checksum("abc", "k1", 1) != generate_checksum("abc", "k2", 1)
    assert generate_checksum("abc", "k1", 1).endswith("###1")
    assert generate_checksum("abc", "k1", 2).endswith("###2")


@pytest.mark.parametrize("payload", ["", None, {"a": 1}, b"bytes"])
def test_malformed_payload_raises(payload):
    with pytest.raises(ValueError):
        generate_checksum(payload, "salt", 1)


def test_missing_salt_key_raises():
    with pytest.raises(ValueError):
        generate_checksum("payload", "", 1)


def test_payment_checksum_signs_pay_endpoint():
    b64 = encode_payload({"amount": 100})
    assert payment_checksum(b64, "salt", 1) == generate_checksum(b64 + "/pg/v1/pay", "salt", 1)


def test_status_checksum_signs_status_path():
    assert status_checksum("M1", "T1", "salt", 3) == generate_checksum(
        "/pg/v1/status/M1/T1", "salt", 3
    )
    with pytest.raises(ValueError):
        status_checksum("M1", "", "salt", 1)


def test_encode_payload_is_base64_json():
    b64 = encode_payload({"merchantId": "M1", "amount": 286000})
    assert json.loads(base64.b64decode(b64)) == {"merchantId": "M1", "amount": 286000}
    assert decode_payload(b64) == {"merchantId": "M1", "amount": 286000}


def test_decode_payload_rejects_garbage():
    with pytest.raises(ValueError):
        decode_payload("not base64 !!")


@pytest.mark.parametrize("body", [[1, 2], "PAYMENT_SUCCESS", 42, None])
def test_decode_payload_requires_json_object(body):
    b64 = base64.b64encode(json.dumps(body).encode()).decode()

    with pytest.raises(ValueError):
        decode_payload(b64)


def test_verify_callback_checksum():
    b64 = encode_payload({"code": "PAYMENT_SUCCESS"})
    good = generate_checksum(b64, "salt", 1)

    assert verify_callback_checksum(b64, good, "salt", 1)
    assert not verify_callback_checksum(b64, good, "other", 1)
    assert not verify_callback_checksum(b64, "", "salt", 1)
    assert not verify_callback_checksum("", good, "salt", 1)
