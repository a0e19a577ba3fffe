"""Content classification — decoded protocol message -> typed payload."""

import sys
from typing import Any, Mapping, Optional, Sequence, Tuple

from msgkit.domain.commands import CommandRegistry
from msgkit.domain.intent_parser import parse
from msgkit.domain.models import (
    AttachmentPayload,
    ContentKind,
    GroupChangePayload,
    MetadataFieldChange,
    Payload,
    ReactionPayload,
    ReplyPayload,
    RosterMember,
    TextPayload,
    UnknownPayload,
)
from msgkit.ports.inbound import (
    CONTENT_TYPE_GROUP_UPDATED,
    CONTENT_TYPE_REACTION,
    CONTENT_TYPE_REMOTE_ATTACHMENT,
    CONTENT_TYPE_REPLY,
    CONTENT_TYPE_TEXT,
    ContentType,
    DecodedMessage,
)
from msgkit.ports.outbound import TransportPort


def _log(msg: str):
    print(msg, file=sys.stderr)


def _get(content: Any, *keys: str, default: Any = None) -> Any:
    """Read the first present key from a mapping or attribute-style object."""
    for key in keys:
        if isinstance(content, Mapping):
            if key in content:
                return content[key]
        elif hasattr(content, key):
            return getattr(content, key)
    return default


def _inbox_ids(items: Optional[Sequence[Any]]) -> Tuple[str, ...]:
    out = []
    for item in items or ():
        inbox_id = item if isinstance(item, str) else _get(item, "inbox_id", "inboxId", default="")
        if inbox_id:
            out.append(str(inbox_id).lower())
    return tuple(out)


def group_change_from(content: Any) -> GroupChangePayload:
    changes = tuple(
        MetadataFieldChange(
            field_name=_get(c, "field_name", "fieldName", default=""),
            new_value=_get(c, "new_value", "newValue", default="") or "",
            old_value=_get(c, "old_value", "oldValue", default="") or "",
        )
        for c in (_get(content, "metadata_field_changes", "metadataFieldChanges", default=()) or ())
    )
    return GroupChangePayload(
        initiated_by_inbox_id=(_get(content, "initiated_by_inbox_id", "initiatedByInboxId", default="") or "").lower(),
        added_inboxes=_inbox_ids(_get(content, "added_inboxes", "addedInboxes")),
        removed_inboxes=_inbox_ids(_get(content, "removed_inboxes", "removedInboxes")),
        metadata_field_changes=changes,
    )


async def classify(
    message: DecodedMessage,
    *,
    registry: CommandRegistry,
    roster: Sequence[RosterMember],
    transport: Optional[TransportPort] = None,
    sigil: Optional[str] = None,
) -> Tuple[ContentKind, Payload]:
    """Map the declared content type of ``message`` to a normalized payload."""
    content_type = message.content_type
    content = message.content

    if content_type.same_as(CONTENT_TYPE_TEXT):
        text = content if isinstance(content, str) else str(content or "")
        return ContentKind.TEXT, TextPayload(parse(text, registry, roster, sigil=sigil))

    if content_type.same_as(CONTENT_TYPE_REPLY):
        inner_type = _get(content, "content_type", "contentType")
        inner_type_id = inner_type.type_id if isinstance(inner_type, ContentType) else str(inner_type or "text")
        return ContentKind.REPLY, ReplyPayload(
            reference=_get(content, "reference", default="") or "",
            content=_get(content, "content"),
            inner_type_id=inner_type_id,
        )

    if content_type.same_as(CONTENT_TYPE_REACTION):
        return ContentKind.REACTION, ReactionPayload(
            reference=_get(content, "reference", default="") or "",
            content=_get(content, "content", default="") or "",
            action=_get(content, "action", default="added") or "added",
            schema=_get(content, "schema", default="unicode") or "unicode",
        )

    if content_type.same_as(CONTENT_TYPE_REMOTE_ATTACHMENT):
        if transport is None:
            return ContentKind.ATTACHMENT, AttachmentPayload(raw=content, error="No transport to load attachment")
        try:
            attachment = await transport.load_attachment(content)
        except Exception as e:
            _log(f"[classifier] attachment load failed for {message.id}: {e}")
            return ContentKind.ATTACHMENT, AttachmentPayload(raw=content, error=str(e) or type(e).__name__)
        return ContentKind.ATTACHMENT, AttachmentPayload(raw=content, attachment=attachment)

    if content_type.same_as(CONTENT_TYPE_GROUP_UPDATED):
        return ContentKind.GROUP_CHANGE, group_change_from(content)

    return ContentKind.UNKNOWN, UnknownPayload(type_id=content_type.type_id, raw=content)
