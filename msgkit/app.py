"""FastAPI host, request models and startup.

Runs a MessageKit over the in-memory transport: decoded messages are POSTed
to ``/messages`` and the response lists everything the bot sent back.
"""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from msgkit.adapters.transport.memory import InMemoryTransport, SentMessage
from msgkit.config import AppConfig, __version__
from msgkit.domain.dispatcher import Handler
from msgkit.kit import MessageKit
from msgkit.ports.inbound import ContentType, DecodedMessage, RawMember
from msgkit.ports.outbound import ReactionContent, ReplyContent

DEFAULT_BOT_ADDRESS = "0x0000000000000000000000000000000000000b07"
DEFAULT_BOT_INBOX = "b07"


# Request/Response models
class MemberModel(BaseModel):
    inbox_id: str
    account_addresses: List[str] = []
    username: Optional[str] = None


class IncomingMessageModel(BaseModel):
    id: Optional[str] = None
    conversation_id: str
    sender_inbox_id: str
    sender_address: Optional[str] = None
    content_type: str = "text"
    content: Any = None
    members: Optional[List[MemberModel]] = None
    is_admin: bool = True


class SentModel(BaseModel):
    id: str
    conversation_id: str
    content_type: str
    content: Any
    reference: Optional[str] = None


class ProcessResponse(BaseModel):
    message_id: str
    content_kind: Optional[str] = None
    sent: List[SentModel]


def _sent_model(sent: SentMessage) -> SentModel:
    content = sent.content
    reference = None
    if isinstance(content, (ReplyContent, ReactionContent)):
        reference = content.reference
        content = content.content
    return SentModel(
        id=sent.id,
        conversation_id=sent.conversation_id,
        content_type=sent.content_type.type_id,
        content=content,
        reference=reference,
    )


def create_app(kit: MessageKit) -> FastAPI:
    if not isinstance(kit.transport, InMemoryTransport):
        raise TypeError("The HTTP host needs an InMemoryTransport")
    transport: InMemoryTransport = kit.transport
    app = FastAPI(title="msgkit")
    # One message at a time so each response only lists its own sends.
    # Created on first request so it belongs to the serving loop.
    app.state.lock = None

    @app.post("/messages", response_model=ProcessResponse)
    async def post_message(req: IncomingMessageModel):
        members = None
        if req.members is not None:
            members = [RawMember(**m.model_dump()) for m in req.members]
        message = DecodedMessage(
            id=req.id or uuid.uuid4().hex,
            content_type=ContentType(req.content_type),
            content=req.content,
            sender_inbox_id=req.sender_inbox_id,
            sender_address=req.sender_address,
            conversation_id=req.conversation_id,
            sent_at=datetime.now(timezone.utc),
        )
        if app.state.lock is None:
            app.state.lock = asyncio.Lock()
        async with app.state.lock:
            conversation = transport.conversation(req.conversation_id, members)
            conversation.is_admin = req.is_admin
            transport.remember(message)
            before = len(transport.outbox)
            ctx = await kit.process(message, conversation)
            sent = transport.outbox[before:]
        return ProcessResponse(
            message_id=message.id,
            content_kind=ctx.content_kind.value if ctx is not None else None,
            sent=[_sent_model(s) for s in sent],
        )

    @app.get("/commands")
    async def commands() -> Dict[str, Any]:
        return {"sigil": kit.registry.sigil, "groups": kit.registry.describe()}

    @app.get("/conversations/{conversation_id}")
    async def conversation(conversation_id: str):
        conv = transport.find_conversation(conversation_id)
        if conv is None:
            raise HTTPException(status_code=404, detail="Unknown conversation")
        return {
            "id": conv.id,
            "name": conv.name,
            "members": [m.inbox_id for m in await conv.members()],
        }

    @app.get("/status")
    async def status():
        return {
            "version": __version__,
            "address": transport.address,
            "commands": len(kit.registry),
            "max_intent_depth": kit.dispatcher.max_depth,
            "fixture_roster": kit.roster_provider is not None,
        }

    return app


def run(
    handler: Optional[Handler] = None,
    *,
    kit: Optional[MessageKit] = None,
    host: str = "0.0.0.0",
    port: Optional[int] = None,
) -> None:
    """Serve ``handler`` (or a prepared kit) over HTTP."""
    import uvicorn

    config = kit.config if kit is not None else AppConfig.from_env()
    if kit is None:
        transport = InMemoryTransport(DEFAULT_BOT_ADDRESS, DEFAULT_BOT_INBOX)
        kit = MessageKit(transport, handler=handler, config=config)
    print(f"msgkit {__version__} listening on {host}:{port or config.port}")
    uvicorn.run(create_app(kit), host=host, port=port or config.port)
