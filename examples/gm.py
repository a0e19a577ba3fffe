"""Smallest possible bot: answers every message with "gm".

    python examples/gm.py
    curl -X POST localhost:3000/messages -H 'content-type: application/json' \
        -d '{"conversation_id": "c1", "sender_inbox_id": "alice", "content": "hi"}'
"""

from msgkit.app import run
from msgkit.domain.context import MessageContext


async def handler(ctx: MessageContext):
    await ctx.send("gm")


if __name__ == "__main__":
    run(handler)
