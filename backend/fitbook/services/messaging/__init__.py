"""Real-time delivery of messages and booking events."""

from .bus import InMemoryMessageBus, MessageBus, RedisMessageBus, build_message_bus

__all__ = ["InMemoryMessageBus", "MessageBus", "RedisMessageBus", "build_message_bus"]
