"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Union


@dataclass
class TokenCredential:
    """Access token issued by the identity provider for a single pipeline run"""

    access_token: str
    expires_in_seconds: int
    token_type: str = "Bearer"
    refresh_token: Optional[str] = None
    scope: Optional[str] = None


@dataclass
class CanonicalRecord:
    """Transaction record in the shape published downstream"""

    id: str
    account_id: str
    amount: Decimal
    currency: str
    type: str
    description: str
    merchant_name: Optional[str]
    category: str
    timestamp: datetime  # local date-time, second precision
    status: str
    reference: str
    balance: Optional[Decimal] = None


@dataclass
class CredentialMeta:
    """Token metadata attached to every published envelope"""

    subject: Optional[str] = None
    issuer: Optional[str] = None
    expires_at: Optional[int] = None  # epoch seconds


@dataclass
class Envelope:
    """Message published to the outbound channel"""

    subject_user_id: str
    records: List[CanonicalRecord]
    produced_at: datetime
    credential_meta: CredentialMeta = field(default_factory=CredentialMeta)


@dataclass
class PipelineSuccess:
    """Pipeline completed and the envelope was handed to the channel"""

    subject_user_id: str
    record_count: int
    timestamp: datetime


@dataclass
class PipelineFailure:
    """Pipeline aborted; message describes the failing step"""

    message: str
    timestamp: datetime


PipelineResult = Union[PipelineSuccess, PipelineFailure]
