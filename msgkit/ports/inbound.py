"""Inbound port — transport-agnostic representation of a decoded message."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

DEFAULT_AUTHORITY = "xmtp.org"


@dataclass(frozen=True)
class ContentType:
    """Declared content type of a decoded message (authority/type/version)."""

    type_id: str
    authority_id: str = DEFAULT_AUTHORITY
    version_major: int = 1
    version_minor: int = 0

    def same_as(self, other: "ContentType") -> bool:
        return self.authority_id == other.authority_id and self.type_id == other.type_id

    def __str__(self) -> str:
        return f"{self.authority_id}/{self.type_id}:{self.version_major}.{self.version_minor}"


CONTENT_TYPE_TEXT = ContentType("text")
CONTENT_TYPE_REPLY = ContentType("reply")
CONTENT_TYPE_REACTION = ContentType("reaction")
CONTENT_TYPE_REMOTE_ATTACHMENT = ContentType("remoteStaticAttachment")
CONTENT_TYPE_GROUP_UPDATED = ContentType("group_updated")


@dataclass
class RawMember:
    """A conversation member as reported by the transport, before normalization."""

    inbox_id: str
    account_addresses: List[str] = field(default_factory=list)
    username: Optional[str] = None


@dataclass
class DecodedMessage:
    """A message already decoded by the transport client.

    ``content`` is whatever the transport codec produced: a string for text,
    a mapping for reply / reaction / attachment / group-change content.
    """

    id: str
    content_type: ContentType
    content: Any
    sender_inbox_id: str
    conversation_id: str = ""
    sender_address: Optional[str] = None
    sent_at: Optional[datetime] = None
