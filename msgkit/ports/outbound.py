"""Outbound ports — interfaces for the transport client and generative backend."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from msgkit.ports.inbound import ContentType, DecodedMessage, RawMember


@dataclass
class ReplyContent:
    """Threaded reply referencing another message id."""

    reference: str
    content: Any
    content_type: ContentType


@dataclass
class ReactionContent:
    """Reaction referencing another message id."""

    reference: str
    content: str
    action: str = "added"
    schema: str = "unicode"


@dataclass
class Attachment:
    """A remote attachment after download and decryption by the transport."""

    filename: str
    mime_type: str
    data: bytes = b""


@dataclass
class DeliveryResult:
    """Outcome of one independent send (used by fan-out sends)."""

    receiver: str
    success: bool
    error: Optional[str] = None


@dataclass
class GenerationResult:
    """Reply produced by the generative backend."""

    reply: str
    history: List[Dict[str, str]] = field(default_factory=list)


@runtime_checkable
class ConversationPort(Protocol):
    """A single conversation (DM or group) owned by the transport client."""

    @property
    def id(self) -> str: ...

    async def members(self) -> List[RawMember]: ...

    async def send(self, content: Any, content_type: Optional[ContentType] = None) -> str: ...

    async def sync(self) -> None: ...

    async def add_members(self, inbox_ids: List[str]) -> None: ...

    async def remove_members(self, addresses: List[str]) -> None: ...

    async def update_name(self, name: str) -> None: ...


@runtime_checkable
class TransportPort(Protocol):
    """The messaging protocol client."""

    @property
    def address(self) -> str: ...

    @property
    def inbox_id(self) -> str: ...

    async def new_conversation(self, addresses: List[str]) -> ConversationPort: ...

    async def get_message_by_id(self, message_id: str) -> Optional[DecodedMessage]: ...

    async def load_attachment(self, content: Any) -> Attachment: ...


@runtime_checkable
class GenerativePort(Protocol):
    """Interface for text generation backends."""

    @property
    def is_configured(self) -> bool: ...

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> GenerationResult: ...
