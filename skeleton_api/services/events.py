"""
Event Broker

Publishes domain events about examples to Redis and consumes them again
with at-least-once delivery.

Features:
- Event types for example lifecycle changes
- Work queue (Redis list) plus a pub/sub announcement per event
- Publish retries up to max_retries times before the event is dropped
- A message whose handler fails is re-queued with retry + 1 and dropped
  once retry reaches max_retries
- A consumer moves each message to a processing list before handling it,
  so a crash mid-handler leaves the message recoverable

Usage:
    from skeleton_api.services.events import Event, EventType

    publisher = request.app.state.events
    background_tasks.add_task(
        publisher.publish,
        Event(type=EventType.EXAMPLE_CREATED, data={"id": 1}),
    )
"""

import json
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

import redis
from redis.exceptions import RedisError

from skeleton_api.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3


# =============================================================================
# Event Types
# =============================================================================


class EventType(StrEnum):
    """Types of events that can be published."""

    EXAMPLE_CREATED = "example.created"
    EXAMPLE_UPDATED = "example.updated"
    EXAMPLE_DELETED = "example.deleted"


@dataclass
class Event:
    """
    Represents an event on the broker.

    Attributes:
        type: The event type
        data: Event payload data
        id: Unique message id (stable across redeliveries)
        timestamp: When the event occurred
        retry: How many times handling has already failed
    """

    type: str
    data: dict[str, Any]
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    retry: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "type": str(self.type),
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
            "retry": self.retry,
        }

    def to_json(self) -> str:
        """Convert event to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "Event":
        """Parse an event previously produced by to_json()."""
        body = json.loads(raw)
        return cls(
            type=body["type"],
            data=body.get("data") or {},
            id=body["id"],
            timestamp=datetime.fromisoformat(body["timestamp"]),
            retry=int(body.get("retry", 0)),
        )


# =============================================================================
# Event Publisher
# =============================================================================


class EventPublisher:
    """
    Publishes events to a Redis work queue and consumes them.

    A publisher without a Redis client is valid: publish() becomes a no-op,
    which is how the service runs when REDIS_URL is not configured.
    """

    def __init__(
        self,
        client: redis.Redis | None,
        queue: str = "skeleton_api:events",
        channel: str = "skeleton_api_events",
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        self._client = client
        self.queue = queue
        self.processing_queue = f"{queue}:processing"
        self.channel = channel
        self.max_retries = max_retries

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def publish(self, event: Event) -> bool:
        """
        Push an event onto the work queue and announce it on the channel.

        Returns:
            True once the event is queued, False if it was dropped
        """
        if self._client is None:
            logger.debug(f"Broker disabled, dropping {event.type} event {event.id}")
            return False

        payload = event.to_json()
        for attempt in range(1, self.max_retries + 1):
            try:
                self._client.lpush(self.queue, payload)
                self._client.publish(self.channel, payload)
                logger.debug(f"Published {event.type} event {event.id}")
                return True
            except RedisError as e:
                logger.warning(
                    f"Failed to publish {event.type} event {event.id} "
                    f"(attempt {attempt}/{self.max_retries}): {e}"
                )

        logger.error(f"Dropping {event.type} event {event.id} after {self.max_retries} attempts")
        return False

    def consume_one(self, handler: Callable[[Event], None], timeout: int = 1) -> bool:
        """
        Take one message off the queue and hand it to ``handler``.

        Returns:
            True if a message was taken (whatever its outcome), False if
            the queue stayed empty for ``timeout`` seconds
        """
        if self._client is None:
            return False

        raw = self._client.blmove(self.queue, self.processing_queue, timeout, "RIGHT", "LEFT")
        if raw is None:
            return False

        try:
            event = Event.from_json(raw)
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Discarding undecodable message: {e}")
            self._client.lrem(self.processing_queue, 1, raw)
            return True

        try:
            handler(event)
        except Exception as e:
            self._retry_or_drop(event, e)
        else:
            logger.debug(f"Handled {event.type} event {event.id}")

        self._client.lrem(self.processing_queue, 1, raw)
        return True

    def _retry_or_drop(self, event: Event, error: Exception) -> None:
        if event.retry >= self.max_retries:
            logger.error(
                f"Dropping {event.type} event {event.id} after {event.retry} retries: {error}"
            )
            return

        event.retry += 1
        logger.warning(
            f"Handler failed for {event.type} event {event.id}, "
            f"re-queueing (retry {event.retry}/{self.max_retries}): {error}"
        )
        self._client.lpush(self.queue, event.to_json())

    def run_consumer(
        self,
        handler: Callable[[Event], None],
        should_stop: Callable[[], bool],
        timeout: int = 1,
    ) -> None:
        """Consume until ``should_stop()`` returns True."""
        logger.info(f"Consuming events from '{self.queue}'")
        while not should_stop():
            try:
                self.consume_one(handler, timeout=timeout)
            except RedisError as e:
                logger.error(f"Broker error while consuming: {e}")
                return

    def ping(self) -> bool:
        """Check broker connectivity."""
        if self._client is None:
            return False
        try:
            return bool(self._client.ping())
        except RedisError as e:
            logger.warning(f"Broker ping failed: {e}")
            return False

    def close(self) -> None:
        """Close the Redis connection on shutdown."""
        if self._client is not None:
            self._client.close()
            logger.info("Broker connection closed")


def create_event_publisher(settings: Settings) -> EventPublisher:
    """Build the publisher for the configured Redis URL (or a disabled one)."""
    client = None
    if settings.redis_url:
        client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
    return EventPublisher(
        client,
        queue=settings.broker_queue,
        channel=settings.broker_channel,
        max_retries=settings.broker_max_retries,
    )
