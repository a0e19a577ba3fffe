"""Built-in handlers for group bots."""

from msgkit.handlers.admin import AdminHandler
from msgkit.handlers.agent import AgentHandler, build_system_prompt
from msgkit.handlers.commands import (
    default_command_handlers,
    default_groups,
    default_registry,
    handle_help,
)

__all__ = [
    "AdminHandler",
    "AgentHandler",
    "build_system_prompt",
    "default_command_handlers",
    "default_groups",
    "default_registry",
    "handle_help",
]
