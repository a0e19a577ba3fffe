"""In-memory transport — implements TransportPort for offline use and tests.

Conversations live in a dict, every outbound message is appended to one
shared outbox. Group mutations respect a per-conversation admin flag so
permission failures can be exercised without a network.
"""

import itertools
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from msgkit.domain.errors import AttachmentUnavailable, PermissionDenied, TransportError
from msgkit.ports.inbound import CONTENT_TYPE_TEXT, ContentType, DecodedMessage, RawMember
from msgkit.ports.outbound import Attachment


@dataclass
class SentMessage:
    id: str
    conversation_id: str
    content: Any
    content_type: ContentType


class InMemoryConversation:
    """ConversationPort backed by a member list and the transport outbox."""

    def __init__(
        self,
        transport: "InMemoryTransport",
        conversation_id: str,
        members: Optional[Iterable[RawMember]] = None,
        name: str = "",
        is_admin: bool = True,
    ):
        self._transport = transport
        self._id = conversation_id
        self._members: List[RawMember] = list(members or [])
        self.name = name
        self.is_admin = is_admin
        self.sync_count = 0

    @property
    def id(self) -> str:
        return self._id

    async def members(self) -> List[RawMember]:
        return list(self._members)

    def set_members(self, members: Iterable[RawMember]) -> None:
        self._members = list(members)

    async def send(self, content: Any, content_type: Optional[ContentType] = None) -> str:
        return self._transport.record(self._id, content, content_type or CONTENT_TYPE_TEXT)

    async def sync(self) -> None:
        self.sync_count += 1

    def _require_admin(self, action: str) -> None:
        if not self.is_admin:
            raise PermissionDenied(f"{action} requires admin rights in {self._id}")

    async def add_members(self, inbox_ids: List[str]) -> None:
        self._require_admin("add_members")
        known = {m.inbox_id.lower() for m in self._members}
        for inbox_id in inbox_ids:
            if inbox_id.lower() in known:
                raise TransportError(f"{inbox_id} is already a member")
            self._members.append(self._transport.lookup(inbox_id) or RawMember(inbox_id=inbox_id))
            known.add(inbox_id.lower())

    async def remove_members(self, addresses: List[str]) -> None:
        self._require_admin("remove_members")
        wanted = {a.lower() for a in addresses}
        remaining = [
            m for m in self._members
            if not wanted.intersection(a.lower() for a in m.account_addresses)
        ]
        if len(remaining) == len(self._members):
            raise TransportError(f"none of {sorted(wanted)} are members")
        self._members = remaining

    async def update_name(self, name: str) -> None:
        self._require_admin("update_name")
        self.name = name


class InMemoryTransport:
    """TransportPort with a local directory of known accounts."""

    def __init__(
        self,
        address: str,
        inbox_id: str,
        directory: Sequence[RawMember] = (),
        attachments: Optional[Dict[str, Attachment]] = None,
    ):
        self._address = address
        self._inbox_id = inbox_id
        self._directory = list(directory)
        self._attachments: Dict[str, Attachment] = dict(attachments or {})
        self._conversations: Dict[str, InMemoryConversation] = {}
        self._messages: Dict[str, DecodedMessage] = {}
        self._ids = itertools.count(1)
        self.outbox: List[SentMessage] = []

    @property
    def address(self) -> str:
        return self._address

    @property
    def inbox_id(self) -> str:
        return self._inbox_id

    def me(self) -> RawMember:
        return RawMember(inbox_id=self._inbox_id, account_addresses=[self._address])

    def lookup(self, identifier: str) -> Optional[RawMember]:
        key = identifier.lower()
        for member in self._directory:
            if member.inbox_id.lower() == key or key in (a.lower() for a in member.account_addresses):
                return member
        return None

    def conversation(
        self,
        conversation_id: str,
        members: Optional[Iterable[RawMember]] = None,
        is_admin: bool = True,
    ) -> InMemoryConversation:
        """Get or create a conversation; ``members`` replaces the member list when given."""
        conv = self._conversations.get(conversation_id)
        if conv is None:
            conv = InMemoryConversation(self, conversation_id, members, is_admin=is_admin)
            self._conversations[conversation_id] = conv
        elif members is not None:
            conv.set_members(members)
        return conv

    def find_conversation(self, conversation_id: str) -> Optional[InMemoryConversation]:
        return self._conversations.get(conversation_id)

    def record(self, conversation_id: str, content: Any, content_type: ContentType) -> str:
        message_id = f"msg-{next(self._ids)}"
        self.outbox.append(SentMessage(message_id, conversation_id, content, content_type))
        return message_id

    def remember(self, message: DecodedMessage) -> None:
        self._messages[message.id] = message

    def add_attachment(self, url: str, attachment: Attachment) -> None:
        self._attachments[url] = attachment

    async def new_conversation(self, addresses: List[str]) -> InMemoryConversation:
        peers = sorted(a.lower() for a in addresses)
        conversation_id = "dm:" + ",".join(peers)
        members = [self.me()] + [self.lookup(a) or RawMember(inbox_id=a, account_addresses=[a]) for a in peers]
        return self.conversation(conversation_id, members)

    async def get_message_by_id(self, message_id: str) -> Optional[DecodedMessage]:
        return self._messages.get(message_id)

    async def load_attachment(self, content: Any) -> Attachment:
        url = content.get("url") if isinstance(content, dict) else getattr(content, "url", None)
        attachment = self._attachments.get(url or "")
        if attachment is None:
            raise AttachmentUnavailable(f"attachment not found: {url}")
        return attachment
