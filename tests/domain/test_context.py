"""Tests for domain/context.py — MessageContext outbound operations."""

import pytest

from msgkit.adapters.transport.memory import InMemoryTransport
from msgkit.domain.context import MessageContext, sender_member, split_messages
from msgkit.domain.errors import TransportError
from msgkit.domain.models import ContentKind
from msgkit.handlers.commands import default_registry
from msgkit.ports.inbound import (
    CONTENT_TYPE_REACTION,
    CONTENT_TYPE_REPLY,
    CONTENT_TYPE_TEXT,
    DecodedMessage,
    RawMember,
)
from msgkit.ports.outbound import ReactionContent, ReplyContent

BOT_ADDR = "0x00000000000000000000000000000000000000b0"
ALIX = RawMember(inbox_id="inbox-alix", account_addresses=["0xaaa"], username="alix")
EVA = RawMember(inbox_id="inbox-eva", account_addresses=["0xeee"], username="eva")


# ── Mock ports ───────────────────────────────────────────────


class MockConversation:
    def __init__(self, conversation_id="conv-1", members=None, fail_with=None):
        self.id = conversation_id
        self._members = list(members or [])
        self.sent = []
        self.fail_with = fail_with

    async def members(self):
        return list(self._members)

    async def send(self, content, content_type=None):
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((content, content_type))
        return f"sent-{len(self.sent)}"

    async def sync(self):
        pass

    async def add_members(self, inbox_ids):
        pass

    async def remove_members(self, addresses):
        pass

    async def update_name(self, name):
        pass


class MockTransport:
    def __init__(self, address=BOT_ADDR, failing=()):
        self.address = address
        self.inbox_id = "inbox-bot"
        self.failing = {f.lower() for f in failing}
        self.opened = {}

    async def new_conversation(self, addresses):
        receiver = addresses[0]
        if receiver in self.failing:
            raise ConnectionError(f"cannot reach {receiver}")
        conv = MockConversation(conversation_id=f"dm:{receiver}")
        self.opened[receiver] = conv
        return conv

    async def get_message_by_id(self, message_id):
        return None

    async def load_attachment(self, content):
        raise NotImplementedError


class MockDispatcher:
    def __init__(self):
        self.calls = []

    async def redispatch(self, ctx, text):
        self.calls.append((ctx, text))


async def _context(text="hello", conversation=None, transport=None, dispatcher=None, sender="inbox-alix"):
    conversation = conversation or MockConversation(members=[ALIX, EVA])
    transport = transport or MockTransport()
    message = DecodedMessage(
        id="msg-in",
        content_type=CONTENT_TYPE_TEXT,
        content=text,
        sender_inbox_id=sender,
    )
    return await MessageContext.create(
        message,
        conversation=conversation,
        transport=transport,
        registry=default_registry(),
        dispatcher=dispatcher,
    )


# ── Tests ────────────────────────────────────────────────────


class TestSplitMessages:
    def test_json_array(self):
        assert split_messages('["/add @alix", "/name x"]') == ["/add @alix", "/name x"]

    def test_plain(self):
        assert split_messages("/help") == ["/help"]

    def test_non_string_array(self):
        assert split_messages("[1, 2]") == ["[1, 2]"]

    def test_json_object(self):
        assert split_messages('{"a": 1}') == ['{"a": 1}']


class TestCreate:
    @pytest.mark.asyncio
    async def test_fields(self):
        ctx = await _context("/add @eva")
        assert ctx.content_kind is ContentKind.TEXT
        assert ctx.sender.username == "me"
        assert ctx.sender.inbox_id == "inbox-alix"
        assert ctx.parsed_intent.trigger == "/add"
        assert ctx.depth == 0
        assert ctx.envelope.conversation_id == "conv-1"
        assert ctx.message is ctx.envelope
        assert [m.username for m in ctx.members] == ["me", "eva"]

    @pytest.mark.asyncio
    async def test_unknown_sender(self):
        ctx = await _context(sender="INBOX-STRANGER")
        assert ctx.sender.inbox_id == "inbox-stranger"
        assert ctx.sender.is_sender

    def test_sender_member_fallback_address(self):
        member = sender_member([], "inbox-x", "0xABC")
        assert member.address == "0xabc"
        assert member.username == "0xabc"


class TestOutbound:
    @pytest.mark.asyncio
    async def test_reply_references_message(self):
        conv = MockConversation(members=[ALIX])
        ctx = await _context(conversation=conv)
        await ctx.reply("pong")
        content, content_type = conv.sent[0]
        assert content_type == CONTENT_TYPE_REPLY
        assert content == ReplyContent(reference="msg-in", content="pong", content_type=CONTENT_TYPE_TEXT)

    @pytest.mark.asyncio
    async def test_send_is_plain_text(self):
        conv = MockConversation(members=[ALIX])
        ctx = await _context(conversation=conv)
        await ctx.send("gm")
        assert conv.sent == [("gm", CONTENT_TYPE_TEXT)]

    @pytest.mark.asyncio
    async def test_react(self):
        conv = MockConversation(members=[ALIX])
        ctx = await _context(conversation=conv)
        await ctx.react("👍")
        content, content_type = conv.sent[0]
        assert content_type == CONTENT_TYPE_REACTION
        assert content == ReactionContent(reference="msg-in", content="👍")

    @pytest.mark.asyncio
    async def test_send_failure_wrapped(self):
        conv = MockConversation(members=[ALIX], fail_with=OSError("socket closed"))
        ctx = await _context(conversation=conv)
        with pytest.raises(TransportError):
            await ctx.send("gm")

    @pytest.mark.asyncio
    async def test_transport_error_passes_through(self):
        err = TransportError("down")
        conv = MockConversation(members=[ALIX], fail_with=err)
        ctx = await _context(conversation=conv)
        with pytest.raises(TransportError) as exc:
            await ctx.reply("x")
        assert exc.value is err


class TestSendTo:
    @pytest.mark.asyncio
    async def test_skips_self_and_duplicates(self):
        transport = MockTransport()
        ctx = await _context(transport=transport)
        results = await ctx.send_to("hi", ["0xAAA", BOT_ADDR.upper().replace("0X", "0x"), "0xaaa", "0xeee"])
        assert [r.receiver for r in results] == ["0xaaa", "0xeee"]
        assert all(r.success for r in results)
        assert transport.opened["0xaaa"].sent == [("hi", CONTENT_TYPE_TEXT)]

    @pytest.mark.asyncio
    async def test_partial_failure(self):
        transport = MockTransport(failing=["0xbad"])
        ctx = await _context(transport=transport)
        results = await ctx.send_to("hi", ["0xaaa", "0xbad", "0xeee"])
        by_receiver = {r.receiver: r for r in results}
        assert by_receiver["0xaaa"].success
        assert by_receiver["0xeee"].success
        assert not by_receiver["0xbad"].success
        assert "cannot reach" in by_receiver["0xbad"].error

    @pytest.mark.asyncio
    async def test_only_self(self):
        ctx = await _context()
        assert await ctx.send_to("hi", [BOT_ADDR]) == []

    @pytest.mark.asyncio
    async def test_with_memory_transport(self):
        transport = InMemoryTransport(BOT_ADDR, "inbox-bot", directory=[ALIX])
        conv = transport.conversation("group-1", [ALIX, EVA])
        ctx = await _context(conversation=conv, transport=transport)
        await ctx.send_to("psst", ["0xaaa"])
        assert transport.outbox[-1].conversation_id == "dm:0xaaa"
        assert transport.outbox[-1].content == "psst"


class TestIntent:
    @pytest.mark.asyncio
    async def test_return_messages(self):
        dispatcher = MockDispatcher()
        ctx = await _context(dispatcher=dispatcher)
        messages = await ctx.intent('["/add @eva", "/name Crew"]', return_messages=True)
        assert messages == ["/add @eva", "/name Crew"]
        assert dispatcher.calls == []

    @pytest.mark.asyncio
    async def test_each_message_redispatched(self):
        dispatcher = MockDispatcher()
        ctx = await _context(dispatcher=dispatcher)
        result = await ctx.intent('["/add @eva", "/help"]')
        assert result is None
        assert [text for _, text in dispatcher.calls] == ["/add @eva", "/help"]

    @pytest.mark.asyncio
    async def test_without_dispatcher_replies(self):
        conv = MockConversation(members=[ALIX])
        ctx = await _context(conversation=conv)
        await ctx.intent("just words")
        assert conv.sent[0][0].content == "just words"

    @pytest.mark.asyncio
    async def test_derive(self):
        ctx = await _context("hello")
        derived = ctx.derive("/name Crew")
        assert derived.depth == 1
        assert derived.parsed_intent.parameters == {"name": "Crew"}
        assert derived.sender == ctx.sender
        assert derived.envelope.id == ctx.envelope.id
        assert ctx.parsed_intent.raw_text == "hello"
