# backend/fitbook/services/messaging/bus.py
"""
Message bus for real-time delivery.

Publishing is fire-and-forget: if the transport fails we log and move on.
Messages are already committed to the database and clients resync on
reconnect.

Two implementations:
- ``InMemoryMessageBus`` for tests and single-process deployments
- ``RedisMessageBus`` backed by redis pub/sub
"""

from __future__ import annotations

from collections import defaultdict
import json
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

import redis

from ...core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, Dict[str, Any]], None]


class MessageBus(Protocol):
    """Publish/subscribe transport for events addressed to a channel."""

    def publish(self, channel: str, event: Dict[str, Any]) -> int:
        ...

    def subscribe(self, channel: str, handler: EventHandler) -> None:
        ...


class InMemoryMessageBus:
    """
    Synchronous in-process bus.

    Every published event is also kept in ``published`` so tests can assert
    on what was delivered and in which order.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()
        self.published: List[Tuple[str, Dict[str, Any]]] = []

    def publish(self, channel: str, event: Dict[str, Any]) -> int:
        with self._lock:
            self.published.append((channel, event))
            handlers = list(self._handlers.get(channel, ()))
        for handler in handlers:
            try:
                handler(channel, event)
            except Exception as exc:
                logger.error(f"[BUS] Handler failed on {channel}: {exc}", exc_info=True)
        return len(handlers)

    def subscribe(self, channel: str, handler: EventHandler) -> None:
        with self._lock:
            self._handlers[channel].append(handler)

    def events_for(self, channel: str) -> List[Dict[str, Any]]:
        return [event for name, event in self.published if name == channel]

    def clear(self) -> None:
        with self._lock:
            self.published.clear()


class RedisMessageBus:
    """
    Redis pub/sub bus.

    Channels are namespaced with the configured prefix, e.g.
    ``fitbook:user:01H...``. Subscriptions are served by redis-py's worker
    thread.
    """

    def __init__(self, client: "redis.Redis", prefix: str = "") -> None:
        self._redis = client
        self._prefix = prefix
        self._pubsub: Optional[Any] = None
        self._worker: Optional[Any] = None

    @classmethod
    def from_url(cls, url: str, prefix: str = "") -> "RedisMessageBus":
        return cls(redis.Redis.from_url(url, decode_responses=True), prefix=prefix)

    def _channel(self, channel: str) -> str:
        return f"{self._prefix}:{channel}" if self._prefix else channel

    def publish(self, channel: str, event: Dict[str, Any]) -> int:
        full_channel = self._channel(channel)
        try:
            receivers = int(self._redis.publish(full_channel, json.dumps(event, default=str)))
        except redis.RedisError as exc:
            logger.error(
                f"[REDIS-BUS] Publish to {full_channel} failed: {exc}",
                extra={"channel": full_channel, "event_type": event.get("type")},
            )
            return 0
        logger.debug(f"[REDIS-BUS] Published {event.get('type')} to {full_channel} ({receivers})")
        return receivers

    def subscribe(self, channel: str, handler: EventHandler) -> None:
        if self._pubsub is None:
            self._pubsub = self._redis.pubsub(ignore_subscribe_messages=True)

        def _on_message(message: Dict[str, Any]) -> None:
            try:
                event = json.loads(message["data"])
            except (TypeError, ValueError) as exc:
                logger.warning(f"[REDIS-BUS] Dropping undecodable message on {channel}: {exc}")
                return
            handler(channel, event)

        self._pubsub.subscribe(**{self._channel(channel): _on_message})
        if self._worker is None:
            self._worker = self._pubsub.run_in_thread(sleep_time=0.05, daemon=True)

    def close(self) -> None:
        if self._worker is not None:
            self._worker.stop()
            self._worker = None
        if self._pubsub is not None:
            self._pubsub.close()
            self._pubsub = None


def build_message_bus(config: Optional[Settings] = None) -> MessageBus:
    """Redis bus when ``message_bus_url`` is configured, in-process otherwise."""
    cfg = config or default_settings
    if cfg.message_bus_url:
        logger.info("Using redis message bus")
        return RedisMessageBus.from_url(cfg.message_bus_url, prefix=cfg.message_bus_channel_prefix)
    return InMemoryMessageBus()
