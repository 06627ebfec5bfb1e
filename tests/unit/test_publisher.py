"""Unit tests for envelope serialization and stream publishing"""

import asyncio
import json
import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from redis.exceptions import ConnectionError as RedisConnectionError

from conftest import FIXED_NOW, make_raw_transaction
from token_gateway.domain.exceptions import PublishError
from token_gateway.domain.models import CanonicalRecord, CredentialMeta, Envelope
from token_gateway.domain.transform import transform
from token_gateway.infrastructure.messaging.publisher import StreamPublisher
from token_gateway.infrastructure.messaging.schemas import serialize_envelope


def make_envelope(records=None) -> Envelope:
    return Envelope(
        subject_user_id="42",
        records=records if records is not None else transform([make_raw_transaction()]),
        produced_at=FIXED_NOW,
        credential_meta=CredentialMeta(
            subject="user-42",
            issuer="http://localhost:8080/realms/finance-app",
            expires_at=1705318205,
        ),
    )


def make_redis(xadd=None) -> MagicMock:
    redis_client = MagicMock()
    redis_client.xadd = xadd or AsyncMock(return_value="1705314605000-0")
    return redis_client


def test_serialize_envelope_wire_format():
    """Test keys and value formats consumers rely on"""
    message = json.loads(serialize_envelope(make_envelope()))

    assert message["userId"] == "42"
    assert message["timestamp"] == "2024-01-15T10:30:05Z"
    assert message["tokenInfo"] == {
        "subject": "user-42",
        "issuer": "http://localhost:8080/realms/finance-app",
        "expires_at": 1705318205,
    }
    assert message["transactions"] == [
        {
            "id": "txn-1",
            "accountId": "ACC-42-X",
            "amount": "1234.56",
            "currency": "EUR",
            "type": "DEBIT",
            "description": "Rent payment",
            "merchantName": "Landlord Ltd",
            "category": "housing",
            "timestamp": "2024-01-15T10:30:00",
            "status": "COMPLETED",
            "reference": "REF-1",
            "balance": "5000.00",
        }
    ]


def test_amount_survives_serialization_exactly():
    """1234.56 in, 1234.56 out: no floating point drift through the envelope"""
    message = json.loads(serialize_envelope(make_envelope()))

    assert Decimal(message["transactions"][0]["amount"]) == Decimal("1234.56")


def test_serialize_optional_fields_as_null():
    record = CanonicalRecord(
        id="txn-9",
        account_id="ACC-42-X",
        amount=Decimal("-0.01"),
        currency="EUR",
        type="DEBIT",
        description="Fee",
        merchant_name=None,
        category="fees",
        timestamp=datetime(2024, 2, 29, 23, 59, 59),
        status="PENDING",
        reference="REF-9",
        balance=None,
    )

    payload = json.loads(serialize_envelope(make_envelope([record])))["transactions"][0]

    assert payload["merchantName"] is None
    assert payload["balance"] is None
    assert payload["amount"] == "-0.01"
    assert payload["timestamp"] == "2024-02-29T23:59:59"


async def test_publish_appends_payload_to_stream():
    redis_client = make_redis()
    publisher = StreamPublisher(redis_client, channel="user-transactions", max_length=500, timeout=1.0)
    envelope = make_envelope()

    await publisher.publish(envelope)

    redis_client.xadd.assert_awaited_once()
    args, kwargs = redis_client.xadd.call_args
    assert args[0] == "user-transactions"
    assert json.loads(args[1]["payload"]) == json.loads(serialize_envelope(envelope))
    assert kwargs == {"maxlen": 500, "approximate": True}


async def test_publish_redis_error_raises_publish_error():
    redis_client = make_redis(AsyncMock(side_effect=RedisConnectionError("connection refused")))
    publisher = StreamPublisher(redis_client, channel="user-transactions", timeout=1.0)

    with pytest.raises(PublishError, match="connection refused"):
        await publisher.publish(make_envelope())


async def test_publish_timeout_raises_publish_error():
    async def slow_xadd(*args, **kwargs):
        await asyncio.sleep(1)

    publisher = StreamPublisher(make_redis(slow_xadd), channel="user-transactions", timeout=0.01)

    with pytest.raises(PublishError, match="timed out"):
        await publisher.publish(make_envelope())


async def test_publish_serialization_failure_never_reaches_stream():
    redis_client = make_redis()
    envelope = make_envelope()
    envelope.records[0].amount = object()

    with pytest.raises(PublishError, match="serialize"):
        await StreamPublisher(redis_client, timeout=1.0).publish(envelope)

    redis_client.xadd.assert_not_called()
