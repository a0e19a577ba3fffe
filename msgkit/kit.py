"""MessageKit — wires transport, registry, roster and dispatcher together."""

import asyncio
import sys
from typing import Dict, Optional

from msgkit.config import AppConfig
from msgkit.domain.commands import CommandRegistry
from msgkit.domain.context import MessageContext
from msgkit.domain.dispatcher import DELIVERY_FAILED_REPLY, Dispatcher, Handler
from msgkit.domain.errors import TransportError
from msgkit.domain.roster import FixtureRosterProvider, RosterProvider
from msgkit.ports.inbound import CONTENT_TYPE_REPLY, CONTENT_TYPE_TEXT, DecodedMessage
from msgkit.ports.outbound import ConversationPort, GenerativePort, ReplyContent, TransportPort


def _log(msg: str):
    print(msg, file=sys.stderr)


class MessageKit:
    """Entry point for one bot: feed it decoded messages with ``process``."""

    def __init__(
        self,
        transport: TransportPort,
        *,
        registry: Optional[CommandRegistry] = None,
        handler: Optional[Handler] = None,
        command_handlers: Optional[Dict[str, Handler]] = None,
        agent_handler: Optional[Handler] = None,
        admin_handler: Optional[Handler] = None,
        roster_provider: Optional[RosterProvider] = None,
        config: Optional[AppConfig] = None,
    ):
        self.config = config or AppConfig.from_env()
        self.transport = transport
        self.registry = registry or CommandRegistry(sigil=self.config.command_sigil)
        if roster_provider is None and self.config.use_fixture_roster:
            roster_provider = FixtureRosterProvider()
        self.roster_provider = roster_provider
        self.dispatcher = Dispatcher(
            self.registry,
            command_handlers=command_handlers,
            agent_handler=agent_handler,
            admin_handler=admin_handler,
            default_handler=handler,
            max_depth=self.config.max_intent_depth,
        )

    @classmethod
    def group_bot(
        cls,
        transport: TransportPort,
        generator: Optional[GenerativePort] = None,
        **kwargs,
    ) -> "MessageKit":
        """Bot with the built-in group commands, admin narration and agent."""
        from msgkit.handlers import AdminHandler, AgentHandler, default_command_handlers, default_registry

        config = kwargs.pop("config", None) or AppConfig.from_env()
        sigil = config.command_sigil
        admin = kwargs.pop("admin_handler", None) or AdminHandler()
        agent = AgentHandler(generator)
        return cls(
            transport,
            registry=kwargs.pop("registry", None) or default_registry(sigil),
            command_handlers=default_command_handlers(admin, agent, sigil=sigil),
            agent_handler=agent,
            admin_handler=admin,
            config=config,
            **kwargs,
        )

    def is_own_message(self, message: DecodedMessage) -> bool:
        own = {(self.transport.inbox_id or "").lower(), (self.transport.address or "").lower()} - {""}
        sender = {(message.sender_inbox_id or "").lower(), (message.sender_address or "").lower()}
        return bool(own & sender)

    async def process(self, message: DecodedMessage, conversation: ConversationPort) -> Optional[MessageContext]:
        """Classify and dispatch one message. Never raises."""
        if self.is_own_message(message):
            return None
        try:
            ctx = await MessageContext.create(
                message,
                conversation=conversation,
                transport=self.transport,
                registry=self.registry,
                dispatcher=self.dispatcher,
                roster_provider=self.roster_provider,
            )
        except (TransportError, asyncio.TimeoutError) as e:
            _log(f"[kit] transport failure building context for {message.id}: {e!r}")
            await self._reply_delivery_failed(message, conversation)
            return None
        except Exception as e:
            _log(f"[kit] could not build context for {message.id}: {e!r}")
            return None
        await self.dispatcher.dispatch(ctx)
        return ctx

    async def _reply_delivery_failed(self, message: DecodedMessage, conversation: ConversationPort) -> None:
        reply = ReplyContent(reference=message.id, content=DELIVERY_FAILED_REPLY, content_type=CONTENT_TYPE_TEXT)
        try:
            await conversation.send(reply, CONTENT_TYPE_REPLY)
        except Exception as e:
            _log(f"[kit] could not reply to {message.id}: {e!r}")
