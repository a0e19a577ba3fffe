"""msgkit — intent parsing and message dispatch for messaging-protocol bots."""

from msgkit.config import AppConfig, CONFIG, __version__
from msgkit.domain.commands import CommandRegistry
from msgkit.domain.context import MessageContext
from msgkit.domain.dispatcher import Dispatcher, Route
from msgkit.domain.models import CommandGroup, CommandSchema, ParamKind, ParamSpec
from msgkit.kit import MessageKit

__all__ = [
    "__version__",
    "AppConfig",
    "CONFIG",
    "CommandRegistry",
    "MessageContext",
    "Dispatcher",
    "Route",
    "CommandGroup",
    "CommandSchema",
    "ParamKind",
    "ParamSpec",
    "MessageKit",
]
