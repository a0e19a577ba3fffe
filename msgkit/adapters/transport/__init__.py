"""Transport adapters — implementations of TransportPort."""

from msgkit.adapters.transport.memory import InMemoryConversation, InMemoryTransport, SentMessage

__all__ = ["InMemoryConversation", "InMemoryTransport", "SentMessage"]
