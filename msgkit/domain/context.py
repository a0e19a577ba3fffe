"""MessageContext — the per-message facade handed to every handler.

Built once per incoming message by ``MessageContext.create``. Its fields are
read-only; re-entrant dispatch builds a derived context instead of mutating
this one.
"""

import asyncio
import json
import sys
from typing import TYPE_CHECKING, Any, List, Optional, Sequence, Tuple

from msgkit.config import CONFIG
from msgkit.domain.classifier import classify
from msgkit.domain.commands import CommandRegistry
from msgkit.domain.errors import MessageKitError, TransportError
from msgkit.domain.intent_parser import parse
from msgkit.domain.models import (
    ContentKind,
    MessageEnvelope,
    ParsedIntent,
    Payload,
    RosterMember,
    TextPayload,
)
from msgkit.domain.roster import RosterProvider, find_by_inbox_id, find_member, resolve
from msgkit.ports.inbound import (
    CONTENT_TYPE_REACTION,
    CONTENT_TYPE_REPLY,
    CONTENT_TYPE_TEXT,
    ContentType,
    DecodedMessage,
)
from msgkit.ports.outbound import (
    ConversationPort,
    DeliveryResult,
    ReactionContent,
    ReplyContent,
    TransportPort,
)

if TYPE_CHECKING:
    from msgkit.domain.dispatcher import Dispatcher


def _log(msg: str):
    print(msg, file=sys.stderr)


def _debug(msg: str):
    if CONFIG["msg_log"]:
        _log(msg)


def split_messages(text: str) -> List[str]:
    """A JSON array of strings is several messages; anything else is one."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        return [text]
    if isinstance(data, list) and all(isinstance(item, str) for item in data):
        return list(data)
    return [text]


def sender_member(roster: Sequence[RosterMember], inbox_id: str, address: Optional[str]) -> RosterMember:
    """Resolved sender, or a bare member built from the raw identifier."""
    member = find_by_inbox_id(roster, inbox_id)
    if member is None and address:
        member = find_member(roster, address)
    if member is not None:
        return member
    ident = (address or inbox_id or "").lower()
    return RosterMember(
        address=ident,
        inbox_id=(inbox_id or "").lower(),
        username=ident,
        account_addresses=(ident,) if ident else (),
        is_sender=True,
    )


class MessageContext:
    """Reply / send / react / send_to / intent for one message."""

    def __init__(
        self,
        envelope: MessageEnvelope,
        *,
        conversation: ConversationPort,
        transport: TransportPort,
        registry: CommandRegistry,
        members: Sequence[RosterMember],
        dispatcher: Optional["Dispatcher"] = None,
    ):
        self._envelope = envelope
        self._conversation = conversation
        self._transport = transport
        self._registry = registry
        self._members: Tuple[RosterMember, ...] = tuple(members)
        self._dispatcher = dispatcher

    @classmethod
    async def create(
        cls,
        message: DecodedMessage,
        *,
        conversation: ConversationPort,
        transport: TransportPort,
        registry: CommandRegistry,
        dispatcher: Optional["Dispatcher"] = None,
        roster_provider: Optional[RosterProvider] = None,
    ) -> "MessageContext":
        """Resolve the roster, classify the content and wrap it in an envelope."""
        raw_members = await conversation.members()
        members = resolve(
            raw_members,
            transport.address,
            message.sender_inbox_id or message.sender_address or "",
            provider=roster_provider,
        )
        kind, payload = await classify(
            message,
            registry=registry,
            roster=members,
            transport=transport,
            sigil=registry.sigil,
        )
        envelope = MessageEnvelope(
            id=message.id,
            sender=sender_member(members, message.sender_inbox_id, message.sender_address),
            content_kind=kind,
            content=payload,
            conversation_id=message.conversation_id or conversation.id,
            sent_at=message.sent_at,
        )
        _debug(f"[context] {message.id} kind={kind.value} sender={envelope.sender.username}")
        return cls(
            envelope,
            conversation=conversation,
            transport=transport,
            registry=registry,
            members=members,
            dispatcher=dispatcher,
        )

    # -- Read-only views --

    @property
    def envelope(self) -> MessageEnvelope:
        return self._envelope

    message = envelope

    @property
    def sender(self) -> RosterMember:
        return self._envelope.sender

    @property
    def content(self) -> Payload:
        return self._envelope.content

    @property
    def content_kind(self) -> ContentKind:
        return self._envelope.content_kind

    @property
    def parsed_intent(self) -> Optional[ParsedIntent]:
        content = self._envelope.content
        return content.intent if isinstance(content, TextPayload) else None

    @property
    def depth(self) -> int:
        return self._envelope.depth

    @property
    def members(self) -> Tuple[RosterMember, ...]:
        return self._members

    @property
    def commands(self) -> CommandRegistry:
        return self._registry

    @property
    def conversation(self) -> ConversationPort:
        return self._conversation

    @property
    def transport(self) -> TransportPort:
        return self._transport

    def derive(self, text: str) -> "MessageContext":
        """Context for ``text`` as a new message from the same sender, one level deeper."""
        intent = parse(text, self._registry, self._members, sigil=self._registry.sigil)
        return MessageContext(
            self._envelope.derive(TextPayload(intent)),
            conversation=self._conversation,
            transport=self._transport,
            registry=self._registry,
            members=self._members,
            dispatcher=self._dispatcher,
        )

    # -- Outbound --

    async def _deliver(self, conversation: ConversationPort, content: Any, content_type: ContentType) -> None:
        try:
            await conversation.send(content, content_type)
        except (MessageKitError, asyncio.TimeoutError):
            raise
        except Exception as e:
            raise TransportError(f"send failed: {e}") from e

    async def reply(self, text: str) -> None:
        """Threaded reply referencing the current message."""
        reply = ReplyContent(
            reference=self._envelope.id,
            content=text,
            content_type=CONTENT_TYPE_TEXT,
        )
        _debug(f"[context] reply to {self._envelope.id}: {text[:80]}")
        await self._deliver(self._conversation, reply, CONTENT_TYPE_REPLY)

    async def send(self, text: str) -> None:
        """Untagged message into the current conversation."""
        await self._deliver(self._conversation, text, CONTENT_TYPE_TEXT)

    async def react(self, emoji: str) -> None:
        reaction = ReactionContent(reference=self._envelope.id, content=emoji)
        await self._deliver(self._conversation, reaction, CONTENT_TYPE_REACTION)

    async def send_to(self, text: str, receivers: Sequence[str]) -> List[DeliveryResult]:
        """Send ``text`` to each receiver in its own conversation.

        The client's own address is skipped. Each send is independent: a
        failure is logged and reported in the result, the others still run.
        """
        own = (self._transport.address or "").lower()
        targets: List[str] = []
        for receiver in receivers:
            key = (receiver or "").lower()
            if not key or key == own or key in targets:
                continue
            targets.append(key)

        async def _one(receiver: str) -> DeliveryResult:
            conversation = await self._transport.new_conversation([receiver])
            await self._deliver(conversation, text, CONTENT_TYPE_TEXT)
            return DeliveryResult(receiver=receiver, success=True)

        outcomes = await asyncio.gather(*(_one(r) for r in targets), return_exceptions=True)
        results: List[DeliveryResult] = []
        for receiver, outcome in zip(targets, outcomes):
            if isinstance(outcome, BaseException):
                _log(f"[context] send_to {receiver} failed: {outcome}")
                results.append(DeliveryResult(receiver=receiver, success=False, error=str(outcome) or type(outcome).__name__))
            else:
                results.append(outcome)
        return results

    async def intent(self, text: str, return_messages: bool = False) -> Optional[List[str]]:
        """Re-enter dispatch with ``text`` as if the sender had typed it.

        A JSON array of strings is treated as several messages. With
        ``return_messages`` the list is returned and nothing is dispatched.
        """
        messages = split_messages(text)
        _debug(f"[context] intent messages={messages}")
        if return_messages:
            return messages
        for message in messages:
            if self._dispatcher is None:
                await self.reply(message)
            else:
                await self._dispatcher.redispatch(self, message)
        return None

    # -- Transport pass-throughs --

    async def get_message_by_id(self, message_id: str) -> Optional[DecodedMessage]:
        return await self._transport.get_message_by_id(message_id)

    async def new_conversation(self, addresses: Sequence[str]) -> ConversationPort:
        return await self._transport.new_conversation(list(addresses))
