"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from fastapi.testclient import TestClient

from token_gateway.api.main import create_app
from token_gateway.application.pipeline import TokenPipeline
from token_gateway.domain.models import Envelope, TokenCredential


FIXED_NOW = datetime(2024, 1, 15, 10, 30, 5, tzinfo=timezone.utc)


class FakeIdentityClient:
    """Returns a fixed credential, or raises the configured error"""

    def __init__(self, credential: Optional[TokenCredential] = None, error: Optional[Exception] = None):
        self.credential = credential or TokenCredential(access_token="tok1", expires_in_seconds=3600)
        self.error = error
        self.codes: List[str] = []

    async def exchange(self, code: str) -> TokenCredential:
        self.codes.append(code)
        if self.error:
            raise self.error
        return self.credential


class FakeTransactionClient:
    def __init__(self, records: Optional[List[Dict[str, Any]]] = None, error: Optional[Exception] = None):
        self.records = records if records is not None else []
        self.error = error
        self.calls: List[tuple] = []

    async def fetch(self, token: TokenCredential, page_size: int | None = None) -> List[Dict[str, Any]]:
        self.calls.append((token.access_token, page_size))
        if self.error:
            raise self.error
        return self.records


class FakePublisher:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.envelopes: List[Envelope] = []

    async def publish(self, envelope: Envelope) -> None:
        if self.error:
            raise self.error
        self.envelopes.append(envelope)


def make_raw_transaction(**overrides: Any) -> Dict[str, Any]:
    """Transaction as returned by the transaction service"""
    record = {
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
    record.update(overrides)
    return record


@pytest.fixture
def raw_transaction() -> Dict[str, Any]:
    return make_raw_transaction()


@pytest.fixture
def identity_client() -> FakeIdentityClient:
    return FakeIdentityClient()


@pytest.fixture
def transaction_client(raw_transaction: Dict[str, Any]) -> FakeTransactionClient:
    return FakeTransactionClient(records=[raw_transaction])


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def pipeline(
    identity_client: FakeIdentityClient,
    transaction_client: FakeTransactionClient,
    publisher: FakePublisher,
) -> TokenPipeline:
    """Pipeline wired with in-memory collaborators and a frozen clock"""
    return TokenPipeline(
        identity_client=identity_client,
        transaction_client=transaction_client,
        publisher=publisher,
        page_size=20,
        account_id_marker="ACC-",
        account_id_separator="-",
        default_issuer="http://localhost:8080/realms/finance-app",
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def client(pipeline: TokenPipeline) -> TestClient:
    """Create FastAPI test client with the in-memory pipeline"""
    app = create_app(pipeline=pipeline)
    return TestClient(app)
