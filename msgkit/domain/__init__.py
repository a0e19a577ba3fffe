"""Domain layer — pure Python, no transport dependencies."""

from msgkit.domain.models import (
    CommandGroup,
    CommandSchema,
    ContentKind,
    IntentKind,
    MessageEnvelope,
    ParamKind,
    ParamSpec,
    ParsedIntent,
    RosterMember,
)
from msgkit.domain.commands import CommandRegistry
from msgkit.domain.intent_parser import parse
from msgkit.domain.roster import FixtureRosterProvider, find_member, resolve
from msgkit.domain.classifier import classify
from msgkit.domain.context import MessageContext
from msgkit.domain.dispatcher import Dispatcher, Route

__all__ = [
    "CommandGroup",
    "CommandSchema",
    "ContentKind",
    "IntentKind",
    "MessageEnvelope",
    "ParamKind",
    "ParamSpec",
    "ParsedIntent",
    "RosterMember",
    "CommandRegistry",
    "parse",
    "FixtureRosterProvider",
    "find_member",
    "resolve",
    "classify",
    "MessageContext",
    "Dispatcher",
    "Route",
]
