"""Dispatcher — routes a classified message to its handler.

Handles:
- command intents -> the handler registered for that trigger
- plaintext -> the agent handler
- group changes -> the admin handler
- everything else -> the default handler
- re-entrant dispatch from ``MessageContext.intent`` with a depth bound

Every handler call runs inside an error boundary: nothing raised by a
handler escapes ``dispatch``.
"""

import asyncio
import sys
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional

from msgkit.config import CONFIG, MAX_INTENT_DEPTH
from msgkit.domain.commands import CommandRegistry
from msgkit.domain.context import MessageContext
from msgkit.domain.errors import MissingCredential, PermissionDenied, TransportError
from msgkit.domain.models import GroupChangePayload, MessageEnvelope, TextPayload

Handler = Callable[[MessageContext], Awaitable[None]]

UNKNOWN_COMMAND_REPLY = "Unknown command. Type /help for a list of available commands."
NO_PRIVILEGES_REPLY = "No admin privileges"
DELIVERY_FAILED_REPLY = "Message delivery failed, please try again."
GENERIC_ERROR_REPLY = "An error occurred while processing your request."
MISSING_CREDENTIAL_REPLY = "A required API key is not configured."
RECURSION_REPLY = "Too much recursion, stopping at: {text}"


def _log(msg: str):
    print(msg, file=sys.stderr)


def _debug(msg: str):
    if CONFIG["msg_log"]:
        _log(msg)


class Route(str, Enum):
    COMMAND = "command"
    UNKNOWN_COMMAND = "unknown_command"
    AGENT = "agent"
    ADMIN = "admin"
    DEFAULT = "default"
    DROP = "drop"


class Dispatcher:
    """Routes MessageContexts to handlers."""

    def __init__(
        self,
        registry: CommandRegistry,
        *,
        command_handlers: Optional[Dict[str, Handler]] = None,
        agent_handler: Optional[Handler] = None,
        admin_handler: Optional[Handler] = None,
        default_handler: Optional[Handler] = None,
        max_depth: int = MAX_INTENT_DEPTH,
    ):
        self._registry = registry
        self._commands: Dict[str, Handler] = {}
        self._agent = agent_handler
        self._admin = admin_handler
        self._default = default_handler
        self._max_depth = max_depth
        for trigger, handler in (command_handlers or {}).items():
            self.register(trigger, handler)

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def register(self, trigger: str, handler: Handler) -> None:
        """Bind ``handler`` to a trigger declared in the registry."""
        schema = self._registry.lookup(trigger)
        if schema is None:
            raise ValueError(f"Trigger {trigger!r} is not in the command registry")
        self._commands[schema.trigger.lower()] = handler

    def has_handler(self, trigger: str) -> bool:
        return (trigger or "").lower() in self._commands

    def route(self, envelope: MessageEnvelope) -> Route:
        content = envelope.content
        if isinstance(content, TextPayload):
            intent = content.intent
            if intent.is_command:
                return Route.COMMAND if self.has_handler(intent.trigger) else Route.UNKNOWN_COMMAND
            if self._agent is not None:
                return Route.AGENT
        elif isinstance(content, GroupChangePayload):
            if self._admin is not None:
                return Route.ADMIN
        return Route.DEFAULT if self._default is not None else Route.DROP

    def _handler_for(self, route: Route, envelope: MessageEnvelope) -> Optional[Handler]:
        if route is Route.COMMAND:
            return self._commands[envelope.content.intent.trigger.lower()]
        if route is Route.AGENT:
            return self._agent
        if route is Route.ADMIN:
            return self._admin
        if route is Route.DEFAULT:
            return self._default
        return None

    async def dispatch(self, ctx: MessageContext) -> Route:
        """Run the handler for ``ctx`` and return the route taken."""
        envelope = ctx.envelope
        route = self.route(envelope)
        _debug(f"[dispatch] {envelope.id} depth={envelope.depth} route={route.value}")
        content = envelope.content
        if isinstance(content, TextPayload) and content.intent.rejected_trigger:
            _log(f"[dispatch] {envelope.id}: {content.intent.rejected_trigger} did not bind, handled as plaintext")

        if route is Route.UNKNOWN_COMMAND:
            await self._safe_reply(ctx, UNKNOWN_COMMAND_REPLY)
        elif route is Route.DROP:
            _log(f"[dispatch] no handler for {envelope.content_kind.value} message {envelope.id}, dropped")
        else:
            await self._invoke(self._handler_for(route, envelope), ctx)
        return route

    async def redispatch(self, ctx: MessageContext, text: str) -> Optional[Route]:
        """One message produced by ``ctx.intent``.

        Sigil-prefixed text is dispatched as a new command one level deeper;
        anything else is sent back as a reply.
        """
        if not text.startswith(self._registry.sigil):
            await ctx.reply(text)
            return None

        if ctx.depth + 1 > self._max_depth:
            _log(f"[dispatch] recursion limit {self._max_depth} hit at: {text[:80]}")
            await self._safe_reply(ctx, RECURSION_REPLY.format(text=text))
            return None

        derived = ctx.derive(text)
        if not derived.parsed_intent.is_command:
            # Nested text that does not resolve to a command never reaches the agent
            await self._safe_reply(derived, UNKNOWN_COMMAND_REPLY)
            return Route.UNKNOWN_COMMAND
        return await self.dispatch(derived)

    async def _invoke(self, handler: Handler, ctx: MessageContext) -> None:
        name = getattr(handler, "__name__", type(handler).__name__)
        try:
            await handler(ctx)
        except PermissionDenied as e:
            _log(f"[dispatch] {name}: permission denied: {e}")
            await self._safe_reply(ctx, NO_PRIVILEGES_REPLY)
        except MissingCredential as e:
            _log(f"[dispatch] {name}: missing credential: {e}")
            await self._safe_reply(ctx, str(e) or MISSING_CREDENTIAL_REPLY)
        except (TransportError, asyncio.TimeoutError) as e:
            _log(f"[dispatch] {name}: transport failure: {e!r}")
            await self._safe_reply(ctx, DELIVERY_FAILED_REPLY)
        except Exception as e:
            _log(f"[dispatch] {name}: error: {e!r}")
            await self._safe_reply(ctx, GENERIC_ERROR_REPLY)

    async def _safe_reply(self, ctx: MessageContext, text: str) -> None:
        try:
            await ctx.reply(text)
        except Exception as e:
            _log(f"[dispatch] could not reply to {ctx.envelope.id}: {e!r}")
