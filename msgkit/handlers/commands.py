"""Built-in command table for group bots."""

from typing import Dict, Optional

from msgkit.config import COMMAND_SIGIL
from msgkit.domain.commands import CommandRegistry
from msgkit.domain.context import MessageContext
from msgkit.domain.dispatcher import Handler
from msgkit.domain.models import CommandGroup, CommandSchema, ParamKind, ParamSpec
from msgkit.handlers.admin import AdminHandler
from msgkit.handlers.agent import PROMPT_PARAM, AgentHandler


def default_groups(sigil: str = COMMAND_SIGIL):
    return (
        CommandGroup(
            name="Group",
            description="Manage the members and name of this group.",
            commands=(
                CommandSchema(
                    f"{sigil}add",
                    (ParamSpec("users", ParamKind.USER_MENTIONS),),
                    "Add users to the group.",
                ),
                CommandSchema(
                    f"{sigil}remove",
                    (ParamSpec("users", ParamKind.USER_MENTIONS),),
                    "Remove users from the group.",
                ),
                CommandSchema(
                    f"{sigil}name",
                    (ParamSpec("name", ParamKind.TEXT),),
                    "Rename the group.",
                ),
            ),
        ),
        CommandGroup(
            name="Agent",
            description="Talk to the group agent.",
            commands=(
                CommandSchema(
                    f"{sigil}agent",
                    (ParamSpec(PROMPT_PARAM, ParamKind.TEXT),),
                    "Ask the agent anything.",
                ),
            ),
        ),
        CommandGroup(
            name="Help",
            commands=(CommandSchema(f"{sigil}help", (), "List the available commands."),),
        ),
    )


def default_registry(sigil: str = COMMAND_SIGIL) -> CommandRegistry:
    return CommandRegistry(default_groups(sigil), sigil=sigil)


async def handle_help(ctx: MessageContext) -> None:
    await ctx.reply(ctx.commands.help_text())


def default_command_handlers(
    admin: Optional[AdminHandler] = None,
    agent: Optional[AgentHandler] = None,
    sigil: str = COMMAND_SIGIL,
) -> Dict[str, Handler]:
    admin = admin or AdminHandler()
    handlers: Dict[str, Handler] = {
        f"{sigil}add": admin.add,
        f"{sigil}remove": admin.remove,
        f"{sigil}name": admin.name,
        f"{sigil}help": handle_help,
    }
    if agent is not None:
        handlers[f"{sigil}agent"] = agent
    return handlers
