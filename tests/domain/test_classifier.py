"""Tests for domain/classifier.py — content type to payload mapping."""

from types import SimpleNamespace

import pytest

from msgkit.adapters.transport.memory import InMemoryTransport
from msgkit.domain.classifier import classify, group_change_from
from msgkit.domain.models import (
    AttachmentPayload,
    ContentKind,
    GroupChangePayload,
    ReactionPayload,
    ReplyPayload,
    TextPayload,
    UnknownPayload,
)
from msgkit.handlers.commands import default_registry
from msgkit.ports.inbound import (
    CONTENT_TYPE_GROUP_UPDATED,
    CONTENT_TYPE_REACTION,
    CONTENT_TYPE_REMOTE_ATTACHMENT,
    CONTENT_TYPE_REPLY,
    CONTENT_TYPE_TEXT,
    ContentType,
    DecodedMessage,
)
from msgkit.ports.outbound import Attachment


def _message(content_type, content):
    return DecodedMessage(id="m1", content_type=content_type, content=content, sender_inbox_id="inbox-a")


async def _classify(message, transport=None):
    return await classify(message, registry=default_registry(), roster=[], transport=transport)


@pytest.mark.asyncio
async def test_text_is_parsed():
    kind, payload = await _classify(_message(CONTENT_TYPE_TEXT, "/help"))
    assert kind is ContentKind.TEXT
    assert isinstance(payload, TextPayload)
    assert payload.intent.trigger == "/help"


@pytest.mark.asyncio
async def test_text_plaintext():
    kind, payload = await _classify(_message(CONTENT_TYPE_TEXT, "gm"))
    assert kind is ContentKind.TEXT
    assert payload.text == "gm"
    assert not payload.intent.is_command


@pytest.mark.asyncio
async def test_reply_mapping():
    kind, payload = await _classify(_message(
        CONTENT_TYPE_REPLY,
        {"reference": "orig", "content": "hi back", "contentType": CONTENT_TYPE_TEXT},
    ))
    assert kind is ContentKind.REPLY
    assert payload == ReplyPayload(reference="orig", content="hi back", inner_type_id="text")


@pytest.mark.asyncio
async def test_reply_attribute_object():
    content = SimpleNamespace(reference="orig", content="x", content_type="reaction")
    kind, payload = await _classify(_message(CONTENT_TYPE_REPLY, content))
    assert payload.inner_type_id == "reaction"


@pytest.mark.asyncio
async def test_reaction():
    kind, payload = await _classify(_message(
        CONTENT_TYPE_REACTION,
        {"reference": "orig", "content": "👍", "action": "removed"},
    ))
    assert kind is ContentKind.REACTION
    assert payload == ReactionPayload(reference="orig", content="👍", action="removed", schema="unicode")


@pytest.mark.asyncio
async def test_attachment_loaded():
    transport = InMemoryTransport("0xb07", "b07")
    image = Attachment(filename="cat.png", mime_type="image/png", data=b"\x89PNG")
    transport.add_attachment("https://files/cat", image)
    kind, payload = await _classify(
        _message(CONTENT_TYPE_REMOTE_ATTACHMENT, {"url": "https://files/cat"}),
        transport=transport,
    )
    assert kind is ContentKind.ATTACHMENT
    assert payload.ok
    assert payload.attachment is image


@pytest.mark.asyncio
async def test_attachment_failure_reported():
    transport = InMemoryTransport("0xb07", "b07")
    kind, payload = await _classify(
        _message(CONTENT_TYPE_REMOTE_ATTACHMENT, {"url": "https://files/missing"}),
        transport=transport,
    )
    assert kind is ContentKind.ATTACHMENT
    assert isinstance(payload, AttachmentPayload)
    assert not payload.ok
    assert "missing" in payload.error


@pytest.mark.asyncio
async def test_attachment_without_transport():
    kind, payload = await _classify(_message(CONTENT_TYPE_REMOTE_ATTACHMENT, {"url": "u"}))
    assert payload.error


@pytest.mark.asyncio
async def test_group_change():
    kind, payload = await _classify(_message(CONTENT_TYPE_GROUP_UPDATED, {
        "initiatedByInboxId": "INBOX-ADMIN",
        "addedInboxes": [{"inboxId": "INBOX-NEW"}],
        "removedInboxes": [],
        "metadataFieldChanges": [{"fieldName": "group_name", "newValue": "Fresh", "oldValue": "Old"}],
    }))
    assert kind is ContentKind.GROUP_CHANGE
    assert isinstance(payload, GroupChangePayload)
    assert payload.initiated_by_inbox_id == "inbox-admin"
    assert payload.added_inboxes == ("inbox-new",)
    assert payload.metadata_field_changes[0].new_value == "Fresh"


@pytest.mark.asyncio
async def test_unknown_type():
    kind, payload = await _classify(_message(ContentType("readReceipt"), {}))
    assert kind is ContentKind.UNKNOWN
    assert payload == UnknownPayload(type_id="readReceipt", raw={})


@pytest.mark.asyncio
async def test_other_authority_is_unknown():
    kind, _ = await _classify(_message(ContentType("text", authority_id="example.com"), "hi"))
    assert kind is ContentKind.UNKNOWN


def test_group_change_snake_case():
    payload = group_change_from({
        "initiated_by_inbox_id": "a",
        "removed_inboxes": ["B", ""],
    })
    assert payload.removed_inboxes == ("b",)
    assert payload.added_inboxes == ()
    assert payload.metadata_field_changes == ()
