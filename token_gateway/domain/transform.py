"""Raw transaction validation and canonical record mapping"""

import re
from collections.abc import Mapping
from decimal import Decimal
from datetime import datetime
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError, field_validator

from token_gateway.domain.exceptions import RecordShapeError
from token_gateway.domain.models import CanonicalRecord
from token_gateway.utils.date_utils import parse_record_timestamp

UNKNOWN_SUBJECT = "unknown"
DECIMAL_TEXT = re.compile(r"[+-]?[0-9]+(\.[0-9]+)?")


class RawTransaction(BaseModel):
    """Schema a fetched transaction must satisfy before it is published"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: StrictStr
    account_id: StrictStr = Field(alias="accountId")
    amount: Decimal = Field(allow_inf_nan=False)
    currency: StrictStr
    type: StrictStr
    description: StrictStr
    merchant_name: Optional[StrictStr] = Field(default=None, alias="merchantName")
    category: StrictStr
    timestamp: datetime
    status: StrictStr
    reference: StrictStr
    balance: Optional[Decimal] = Field(default=None, allow_inf_nan=False)

    @field_validator("amount", "balance", mode="before")
    @classmethod
    def exact_decimal(cls, value: Any) -> Any:
        """Route numbers through their text form so no float arithmetic touches money"""
        if value is None or isinstance(value, Decimal):
            return value
        if isinstance(value, bool):
            raise ValueError("boolean is not a monetary value")
        if not isinstance(value, (int, float, str)):
            raise ValueError(f"unsupported monetary value type {type(value).__name__}")

        text = repr(value) if isinstance(value, float) else str(value).strip()
        if isinstance(value, str) and not DECIMAL_TEXT.fullmatch(text):
            raise ValueError(f"{value!r} is not a plain decimal number")
        try:
            amount = Decimal(text)
        except ArithmeticError as e:
            raise ValueError(f"{value!r} is not a decimal number") from e
        if not amount.is_finite():
            raise ValueError(f"{value!r} is not a finite amount")
        return amount

    @field_validator("timestamp", mode="before")
    @classmethod
    def local_timestamp(cls, value: Any) -> datetime:
        if not isinstance(value, str):
            raise ValueError("timestamp must be a string")
        try:
            return parse_record_timestamp(value)
        except ValueError as e:
            raise ValueError(f"timestamp {value!r} does not match yyyy-MM-ddTHH:mm:ss") from e


def _to_canonical(raw: RawTransaction) -> CanonicalRecord:
    return CanonicalRecord(
        id=raw.id,
        account_id=raw.account_id,
        amount=raw.amount,
        currency=raw.currency,
        type=raw.type,
        description=raw.description,
        merchant_name=raw.merchant_name,
        category=raw.category,
        timestamp=raw.timestamp,
        status=raw.status,
        reference=raw.reference,
        balance=raw.balance,
    )


def transform(raw_records: Sequence[Any]) -> List[CanonicalRecord]:
    """
    Validate every fetched record and map it to the canonical shape.

    The whole page is validated before anything is returned, so a single bad
    record means no records at all.

    Raises:
        RecordShapeError: for the first record that fails validation
    """
    records = []
    for index, raw in enumerate(raw_records):
        if not isinstance(raw, Mapping):
            raise RecordShapeError(index, detail=f"expected an object, got {type(raw).__name__}")

        record_id = raw.get("id") if isinstance(raw.get("id"), str) else None
        try:
            validated = RawTransaction.model_validate(dict(raw))
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            first = e.errors()[0]["msg"] if e.errors() else ""
            raise RecordShapeError(index, record_id=record_id, fields=fields, detail=first) from e

        records.append(_to_canonical(validated))

    return records


def derive_subject_user_id(
    records: Sequence[CanonicalRecord],
    marker: str = "ACC-",
    separator: str = "-",
) -> str:
    """
    Extract the subject user id from the first record's account id.

    "ACC-42-X" -> "42". Falls back to "unknown" when there are no records,
    the account id does not start with the marker, or nothing follows it.
    """
    if not records:
        return UNKNOWN_SUBJECT

    account_id = records[0].account_id
    if not account_id.startswith(marker):
        return UNKNOWN_SUBJECT

    subject = account_id[len(marker):]
    if separator:
        subject = subject.split(separator, 1)[0]
    return subject or UNKNOWN_SUBJECT
