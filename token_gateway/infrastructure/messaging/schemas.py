"""Pydantic schemas for the published transaction envelope"""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from token_gateway.domain.models import CanonicalRecord, Envelope
from token_gateway.utils.date_utils import format_record_timestamp, isoformat_utc


class TransactionPayload(BaseModel):
    """Single transaction inside the envelope; decimals serialize as strings"""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    account_id: str = Field(alias="accountId")
    amount: Decimal
    currency: str
    type: str
    description: str
    merchant_name: Optional[str] = Field(default=None, alias="merchantName")
    category: str
    timestamp: str
    status: str
    reference: str
    balance: Optional[Decimal] = None

    @classmethod
    def from_record(cls, record: CanonicalRecord) -> "TransactionPayload":
        return cls(
            id=record.id,
            account_id=record.account_id,
            amount=record.amount,
            currency=record.currency,
            type=record.type,
            description=record.description,
            merchant_name=record.merchant_name,
            category=record.category,
            timestamp=format_record_timestamp(record.timestamp),
            status=record.status,
            reference=record.reference,
            balance=record.balance,
        )


class TokenInfoPayload(BaseModel):
    subject: Optional[str] = None
    issuer: Optional[str] = None
    expires_at: Optional[int] = None


class EnvelopeMessage(BaseModel):
    """Message body appended to the outbound stream"""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    transactions: List[TransactionPayload]
    timestamp: str
    token_info: TokenInfoPayload = Field(alias="tokenInfo")

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> "EnvelopeMessage":
        meta = envelope.credential_meta
        return cls(
            user_id=envelope.subject_user_id,
            transactions=[TransactionPayload.from_record(r) for r in envelope.records],
            timestamp=isoformat_utc(envelope.produced_at),
            token_info=TokenInfoPayload(
                subject=meta.subject,
                issuer=meta.issuer,
                expires_at=meta.expires_at,
            ),
        )


def serialize_envelope(envelope: Envelope) -> str:
    """Render the envelope as the JSON text consumers read from the stream"""
    return EnvelopeMessage.from_envelope(envelope).model_dump_json(by_alias=True)
