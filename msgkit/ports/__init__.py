"""Port interfaces (Hexagonal Architecture)."""

from msgkit.ports.inbound import (
    CONTENT_TYPE_GROUP_UPDATED,
    CONTENT_TYPE_REACTION,
    CONTENT_TYPE_REMOTE_ATTACHMENT,
    CONTENT_TYPE_REPLY,
    CONTENT_TYPE_TEXT,
    ContentType,
    DecodedMessage,
    RawMember,
)
from msgkit.ports.outbound import (
    Attachment,
    ConversationPort,
    DeliveryResult,
    GenerationResult,
    GenerativePort,
    ReactionContent,
    ReplyContent,
    TransportPort,
)

__all__ = [
    "CONTENT_TYPE_GROUP_UPDATED",
    "CONTENT_TYPE_REACTION",
    "CONTENT_TYPE_REMOTE_ATTACHMENT",
    "CONTENT_TYPE_REPLY",
    "CONTENT_TYPE_TEXT",
    "ContentType",
    "DecodedMessage",
    "RawMember",
    "Attachment",
    "ConversationPort",
    "DeliveryResult",
    "GenerationResult",
    "GenerativePort",
    "ReactionContent",
    "ReplyContent",
    "TransportPort",
]
