"""Domain data models — pure Python dataclasses."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from msgkit.ports.outbound import Attachment


# ── Roster ───────────────────────────────────────────────────


@dataclass(frozen=True)
class RosterMember:
    """A conversation participant after normalization."""

    address: str
    inbox_id: str
    username: str
    account_addresses: Tuple[str, ...] = ()
    is_sender: bool = False  # alias "me"
    is_self: bool = False  # the client's own account, alias "bot"
    is_fixture: bool = False
    # Transport-level name, still resolvable when username is an alias
    handle: str = ""

    @property
    def mention(self) -> str:
        return f"@{self.username}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.mention,
            "address": self.address,
            "inboxId": self.inbox_id,
        }


# ── Command schemas ──────────────────────────────────────────


class ParamKind(str, Enum):
    WORD = "word"
    TEXT = "text"
    NUMBER = "number"
    ENUM = "enum"
    USER_MENTIONS = "user_mentions"
    ADDRESS = "address"


@dataclass(frozen=True)
class ParamSpec:
    name: str
    kind: ParamKind = ParamKind.WORD
    required: bool = True
    choices: Tuple[str, ...] = ()
    default: Any = None
    description: str = ""


@dataclass(frozen=True)
class CommandSchema:
    """Static definition of one command: its trigger and ordered parameters."""

    trigger: str  # e.g. "/add"
    params: Tuple[ParamSpec, ...] = ()
    description: str = ""

    @property
    def usage(self) -> str:
        parts = [self.trigger]
        for p in self.params:
            if p.kind is ParamKind.USER_MENTIONS:
                label = f"@{p.name}"
            elif p.kind is ParamKind.ENUM and p.choices:
                label = "|".join(p.choices)
            else:
                label = f"<{p.name}>"
            parts.append(label if p.required else f"[{label}]")
        return " ".join(parts)


@dataclass(frozen=True)
class CommandGroup:
    """Commands grouped for the help listing and the agent system prompt."""

    name: str
    commands: Tuple[CommandSchema, ...]
    description: str = ""


# ── Parsed intent ────────────────────────────────────────────


class IntentKind(str, Enum):
    COMMAND = "command"
    PLAINTEXT = "plaintext"


@dataclass(frozen=True)
class ParsedIntent:
    """Result of parsing a text message."""

    kind: IntentKind
    raw_text: str
    trigger: Optional[str] = None
    parameters: Dict[str, Any] = field(default_factory=dict)
    schema: Optional[CommandSchema] = None
    # Trigger that matched a schema but failed binding (plaintext fallback)
    rejected_trigger: Optional[str] = None

    @property
    def is_command(self) -> bool:
        return self.kind is IntentKind.COMMAND

    @classmethod
    def plaintext(cls, text: str, rejected_trigger: Optional[str] = None) -> "ParsedIntent":
        return cls(kind=IntentKind.PLAINTEXT, raw_text=text, rejected_trigger=rejected_trigger)


# ── Content payloads ─────────────────────────────────────────


class ContentKind(str, Enum):
    TEXT = "text"
    REPLY = "reply"
    REACTION = "reaction"
    ATTACHMENT = "attachment"
    GROUP_CHANGE = "group_change"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TextPayload:
    intent: ParsedIntent

    @property
    def text(self) -> str:
        return self.intent.raw_text


@dataclass(frozen=True)
class ReplyPayload:
    reference: str
    content: Any
    inner_type_id: str = "text"


@dataclass(frozen=True)
class ReactionPayload:
    reference: str
    content: str
    action: str = "added"
    schema: str = "unicode"


@dataclass(frozen=True)
class AttachmentPayload:
    raw: Any
    attachment: Optional[Attachment] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.attachment is not None and self.error is None


@dataclass(frozen=True)
class MetadataFieldChange:
    field_name: str
    new_value: str = ""
    old_value: str = ""


@dataclass(frozen=True)
class GroupChangePayload:
    initiated_by_inbox_id: str
    added_inboxes: Tuple[str, ...] = ()
    removed_inboxes: Tuple[str, ...] = ()
    metadata_field_changes: Tuple[MetadataFieldChange, ...] = ()


@dataclass(frozen=True)
class UnknownPayload:
    type_id: str
    raw: Any = None


Payload = Union[
    TextPayload,
    ReplyPayload,
    ReactionPayload,
    AttachmentPayload,
    GroupChangePayload,
    UnknownPayload,
]


# ── Envelope ─────────────────────────────────────────────────


@dataclass(frozen=True)
class MessageEnvelope:
    """One classified message, owned by exactly one MessageContext."""

    id: str
    sender: RosterMember
    content_kind: ContentKind
    content: Payload
    conversation_id: str = ""
    sent_at: Optional[datetime] = None
    depth: int = 0

    def derive(self, content: TextPayload) -> "MessageEnvelope":
        """Envelope for a re-entrant dispatch: same sender/conversation, new text."""
        return replace(
            self,
            content_kind=ContentKind.TEXT,
            content=content,
            depth=self.depth + 1,
        )


def member_list(members: List[RosterMember]) -> List[Dict[str, Any]]:
    return [m.to_dict() for m in members]
