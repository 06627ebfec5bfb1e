"""Pydantic schemas for API responses"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from token_gateway.domain.models import PipelineFailure, PipelineSuccess
from token_gateway.utils.date_utils import isoformat_utc, utc_now


class TokenFlowResponse(BaseModel):
    """Response for GET /token when the flow succeeds"""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["success"] = "success"
    message: str = "Transactions processed and published"
    user_id: str = Field(alias="userId")
    transaction_count: int = Field(alias="transactionCount")
    timestamp: str

    @classmethod
    def from_result(cls, result: PipelineSuccess) -> "TokenFlowResponse":
        return cls(
            user_id=result.subject_user_id,
            transaction_count=result.record_count,
            timestamp=isoformat_utc(result.timestamp),
        )


class ErrorResponse(BaseModel):
    """Error body for GET /token (bad request or failed flow)"""

    status: Literal["error"] = "error"
    message: str
    timestamp: str

    @classmethod
    def from_result(cls, result: PipelineFailure) -> "ErrorResponse":
        return cls(message=result.message, timestamp=isoformat_utc(result.timestamp))

    @classmethod
    def bad_request(cls, message: str) -> "ErrorResponse":
        return cls(message=message, timestamp=isoformat_utc(utc_now()))


class HealthResponse(BaseModel):
    status: str = "UP"
    service: str
    timestamp: str
