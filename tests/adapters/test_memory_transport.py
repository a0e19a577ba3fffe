"""Tests for adapters/transport/memory.py."""

import pytest

from msgkit.adapters.transport.memory import InMemoryConversation, InMemoryTransport
from msgkit.domain.errors import AttachmentUnavailable, PermissionDenied, TransportError
from msgkit.ports.inbound import CONTENT_TYPE_TEXT, DecodedMessage, RawMember
from msgkit.ports.outbound import Attachment, ConversationPort, TransportPort

BOT_ADDR = "0x00000000000000000000000000000000000000b0"
ALIX = RawMember(inbox_id="inbox-alix", account_addresses=["0xAAA"], username="alix")
EVA = RawMember(inbox_id="inbox-eva", account_addresses=["0xeee"], username="eva")


@pytest.fixture
def transport():
    return InMemoryTransport(BOT_ADDR, "inbox-bot", directory=[ALIX, EVA])


class TestTransport:
    def test_conforms_to_ports(self, transport):
        assert isinstance(transport, TransportPort)
        assert isinstance(transport.conversation("c"), ConversationPort)

    def test_lookup(self, transport):
        assert transport.lookup("0xaaa") is ALIX
        assert transport.lookup("INBOX-EVA") is EVA
        assert transport.lookup("nobody") is None

    def test_conversation_get_or_create(self, transport):
        conv = transport.conversation("c", [ALIX])
        assert transport.conversation("c") is conv
        assert transport.find_conversation("c") is conv
        assert transport.find_conversation("other") is None

    @pytest.mark.asyncio
    async def test_new_conversation(self, transport):
        conv = await transport.new_conversation(["0xEEE"])
        assert conv.id == "dm:0xeee"
        assert [m.inbox_id for m in await conv.members()] == ["inbox-bot", "inbox-eva"]
        assert await transport.new_conversation(["0xeee"]) is conv

    @pytest.mark.asyncio
    async def test_send_records_outbox(self, transport):
        conv = transport.conversation("c")
        message_id = await conv.send("gm")
        assert message_id == "msg-1"
        assert transport.outbox[0].content == "gm"
        assert transport.outbox[0].content_type == CONTENT_TYPE_TEXT

    @pytest.mark.asyncio
    async def test_message_store(self, transport):
        msg = DecodedMessage(id="m1", content_type=CONTENT_TYPE_TEXT, content="hi", sender_inbox_id="x")
        transport.remember(msg)
        assert await transport.get_message_by_id("m1") is msg
        assert await transport.get_message_by_id("m2") is None

    @pytest.mark.asyncio
    async def test_attachments(self, transport):
        att = Attachment("a.txt", "text/plain", b"hello")
        transport.add_attachment("https://x/a", att)
        assert await transport.load_attachment({"url": "https://x/a"}) is att
        with pytest.raises(AttachmentUnavailable):
            await transport.load_attachment({"url": "https://x/b"})


class TestConversation:
    @pytest.mark.asyncio
    async def test_add_members_from_directory(self, transport):
        conv = transport.conversation("c", [transport.me()])
        await conv.add_members(["inbox-alix"])
        members = await conv.members()
        assert members[-1] is ALIX

    @pytest.mark.asyncio
    async def test_add_existing(self, transport):
        conv = transport.conversation("c", [ALIX])
        with pytest.raises(TransportError):
            await conv.add_members(["INBOX-ALIX"])

    @pytest.mark.asyncio
    async def test_remove(self, transport):
        conv = transport.conversation("c", [ALIX, EVA])
        await conv.remove_members(["0xaaa"])
        assert await conv.members() == [EVA]

    @pytest.mark.asyncio
    async def test_remove_missing(self, transport):
        conv = transport.conversation("c", [EVA])
        with pytest.raises(TransportError):
            await conv.remove_members(["0xaaa"])

    @pytest.mark.asyncio
    async def test_not_admin(self, transport):
        conv = InMemoryConversation(transport, "c", [ALIX], is_admin=False)
        with pytest.raises(PermissionDenied):
            await conv.add_members(["inbox-eva"])
        with pytest.raises(PermissionDenied):
            await conv.remove_members(["0xaaa"])
        with pytest.raises(PermissionDenied):
            await conv.update_name("x")
        assert conv.name == ""

    @pytest.mark.asyncio
    async def test_sync_counts(self, transport):
        conv = transport.conversation("c")
        await conv.sync()
        await conv.sync()
        assert conv.sync_count == 2
