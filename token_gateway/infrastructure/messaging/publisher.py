"""Redis Streams publisher for transaction envelopes"""

import asyncio
import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from token_gateway.config import settings
from token_gateway.domain.exceptions import PublishError
from token_gateway.domain.models import Envelope
from token_gateway.infrastructure.messaging.schemas import serialize_envelope
from token_gateway.infrastructure.observability.metrics import published_records_counter

logger = logging.getLogger(__name__)


def create_redis_client(url: str | None = None) -> redis.Redis:
    """Build an asyncio Redis client backed by a connection pool"""
    return redis.Redis.from_url(url or settings.redis_url, decode_responses=True)


class StreamPublisher:
    """
    Hands envelopes to a named Redis Stream.

    publish() returns as soon as the stream has stored the entry. Consumers
    read it on their own schedule; delivery is never awaited here, but a
    serialization failure or a rejected append raises at the call site.
    """

    def __init__(
        self,
        client: redis.Redis,
        channel: str | None = None,
        max_length: int | None = None,
        timeout: float | None = None,
    ):
        self.client = client
        self.channel = channel or settings.transactions_channel
        self.max_length = max_length or settings.stream_max_length
        self.timeout = timeout or settings.publish_timeout_seconds

    async def publish(self, envelope: Envelope) -> None:
        """
        Serialize and append an envelope to the stream.

        Raises:
            PublishError: On serialization failure, Redis errors, or timeout
        """
        try:
            payload = serialize_envelope(envelope)
        except (ValueError, TypeError) as e:
            raise PublishError(f"Failed to serialize envelope for user {envelope.subject_user_id}: {e}") from e

        try:
            entry_id = await asyncio.wait_for(
                self.client.xadd(
                    self.channel,
                    {"payload": payload},
                    maxlen=self.max_length,
                    approximate=True,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise PublishError(f"Publish to {self.channel} timed out after {self.timeout}s") from e
        except RedisError as e:
            raise PublishError(f"Failed to publish transactions to {self.channel}: {e}") from e

        published_records_counter.inc(len(envelope.records))
        logger.info(
            "Published transactions",
            extra={
                "step": "publish",
                "channel": self.channel,
                "entry_id": entry_id,
                "user_id": envelope.subject_user_id,
                "transaction_count": len(envelope.records),
            },
        )
