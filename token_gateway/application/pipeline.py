"""OAuth token exchange → transaction fetch → stream publish pipeline"""

import logging
import time
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Protocol

import jwt

from token_gateway.config import settings
from token_gateway.domain.exceptions import DomainException
from token_gateway.domain.models import (
    CredentialMeta,
    Envelope,
    PipelineFailure,
    PipelineResult,
    PipelineSuccess,
    TokenCredential,
)
from token_gateway.domain.transform import derive_subject_user_id, transform
from token_gateway.infrastructure.observability.logging import log_pipeline_outcome, mask_secret
from token_gateway.infrastructure.observability.metrics import record_run, step_latency_histogram
from token_gateway.utils.date_utils import utc_now

logger = logging.getLogger(__name__)

FAILURE_PREFIX = "Failed to process OAuth flow"


class PipelineState(str, Enum):
    START = "start"
    EXCHANGING = "exchange"
    FETCHING = "fetch"
    TRANSFORMING = "transform"
    PUBLISHING = "publish"
    DONE = "done"
    FAILED = "failed"


class TokenExchanger(Protocol):
    async def exchange(self, code: str) -> TokenCredential: ...


class RecordFetcher(Protocol):
    async def fetch(self, token: TokenCredential, page_size: int | None = None) -> List[Dict[str, Any]]: ...


class EnvelopePublisher(Protocol):
    async def publish(self, envelope: Envelope) -> None: ...


class TokenPipeline:
    """
    Runs the OAuth flow for one authorization code.

    Steps run strictly in order; the first failing step ends the run and
    nothing after it executes. run() never raises: every error becomes a
    PipelineFailure. Instances hold only their collaborators, so one
    pipeline can serve concurrent requests.
    """

    def __init__(
        self,
        identity_client: TokenExchanger,
        transaction_client: RecordFetcher,
        publisher: EnvelopePublisher,
        page_size: int | None = None,
        account_id_marker: str | None = None,
        account_id_separator: str | None = None,
        default_issuer: str | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.identity_client = identity_client
        self.transaction_client = transaction_client
        self.publisher = publisher
        self.page_size = page_size or settings.transaction_page_size
        self.account_id_marker = account_id_marker or settings.account_id_marker
        self.account_id_separator = (
            settings.account_id_separator if account_id_separator is None else account_id_separator
        )
        self.default_issuer = default_issuer or settings.identity_issuer
        self.clock = clock

    async def run(self, code: str, request_id: str = "unknown") -> PipelineResult:
        """
        Exchange the code, fetch one page of transactions, and publish them.

        Flow:
        1. Exchange authorization code for an access token
        2. Fetch transactions with the bearer token
        3. Validate and map every record, derive the subject user id
        4. Publish the envelope to the outbound stream
        """
        start_time = time.time()
        state = PipelineState.START

        if not code or not code.strip():
            return PipelineFailure(message=f"{FAILURE_PREFIX}: authorization code is required", timestamp=self.clock())

        logger.info(
            "Starting OAuth flow",
            extra={"request_id": request_id, "step": state.value, "code": mask_secret(code)},
        )

        try:
            # 1. Token exchange
            state = PipelineState.EXCHANGING
            with step_latency_histogram.labels(step=state.value).time():
                credential = await self.identity_client.exchange(code)
            logger.info("Exchanged code for access token", extra={"request_id": request_id, "step": state.value})

            # 2. Fetch
            state = PipelineState.FETCHING
            with step_latency_histogram.labels(step=state.value).time():
                raw_records = await self.transaction_client.fetch(credential, self.page_size)
            logger.info(
                "Fetched transactions",
                extra={"request_id": request_id, "step": state.value, "transaction_count": len(raw_records)},
            )

            # 3. Transform
            state = PipelineState.TRANSFORMING
            with step_latency_histogram.labels(step=state.value).time():
                records = transform(raw_records)
                subject_user_id = derive_subject_user_id(
                    records, self.account_id_marker, self.account_id_separator
                )
                produced_at = self.clock()
                envelope = Envelope(
                    subject_user_id=subject_user_id,
                    records=records,
                    produced_at=produced_at,
                    credential_meta=self._credential_meta(credential, produced_at),
                )

            # 4. Publish
            state = PipelineState.PUBLISHING
            with step_latency_histogram.labels(step=state.value).time():
                await self.publisher.publish(envelope)

        except DomainException as e:
            return self._fail(state, request_id, start_time, f"{FAILURE_PREFIX}: {e}")

        except Exception:
            logger.exception("Unexpected pipeline error", extra={"request_id": request_id, "step": state.value})
            return self._fail(state, request_id, start_time, f"{FAILURE_PREFIX}: internal error during {state.value}")

        duration_ms = (time.time() - start_time) * 1000
        record_run(success=True)
        log_pipeline_outcome(request_id, subject_user_id, True, len(records), duration_ms)

        return PipelineSuccess(
            subject_user_id=subject_user_id,
            record_count=len(records),
            timestamp=self.clock(),
        )

    def _fail(self, state: PipelineState, request_id: str, start_time: float, message: str) -> PipelineFailure:
        duration_ms = (time.time() - start_time) * 1000
        record_run(success=False, failed_step=state.value)
        logger.error(
            message,
            extra={"request_id": request_id, "step": state.value, "state": PipelineState.FAILED.value},
        )
        log_pipeline_outcome(request_id, None, False, 0, duration_ms, failed_step=state.value)
        return PipelineFailure(message=message, timestamp=self.clock())

    def _credential_meta(self, credential: TokenCredential, now: datetime) -> CredentialMeta:
        """Subject and issuer come from JWT claims when the access token is a JWT"""
        claims = _unverified_claims(credential.access_token)
        subject = claims.get("sub")
        issuer = claims.get("iss")
        return CredentialMeta(
            subject=str(subject) if subject is not None else None,
            issuer=str(issuer) if issuer is not None else self.default_issuer,
            expires_at=int(now.timestamp()) + credential.expires_in_seconds,
        )


def _unverified_claims(access_token: str) -> Dict[str, Any]:
    try:
        claims = jwt.decode(access_token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return {}
    return claims if isinstance(claims, dict) else {}

