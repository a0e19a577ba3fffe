"""Agent handler — free text answered by a generative backend."""

import json
import sys
from typing import Optional

from msgkit.config import CONFIG
from msgkit.domain.context import MessageContext, split_messages
from msgkit.domain.errors import MissingCredential
from msgkit.domain.models import member_list
from msgkit.ports.outbound import GenerativePort

NO_API_KEY_REPLY = "No OpenAI API key found"
GENERATION_FAILED_REPLY = "An error occurred while processing your request."
PROMPT_PARAM = "prompt"


def _log(msg: str):
    print(msg, file=sys.stderr)


def build_system_prompt(ctx: MessageContext) -> str:
    members = json.dumps(member_list(ctx.members), ensure_ascii=False)
    commands = json.dumps(ctx.commands.describe(), ensure_ascii=False)
    return (
        "You are a helpful agent that lives inside a web3 messaging group.\n"
        f"These are the users of the group: {members}\n"
        f"This group app has these commands available: {commands}\n"
        "If a user asks for jokes, make jokes about web3 devs.\n"
        "If the user asks to perform an action and a command fits, answer with the command "
        "and nothing else. Fill it with real values from the conversation, never placeholders.\n"
        "To run several commands, answer with a JSON array of command strings.\n"
        "If the message does not clearly map to a command, answer helpfully or ask a "
        "clarifying question.\n"
        f"The message was sent by {ctx.sender.mention}."
    )


def is_command_reply(reply: str, sigil: str) -> bool:
    """A single command (one sigil, leading) or a JSON array of messages."""
    if reply.startswith(sigil) and sigil not in reply[len(sigil):]:
        return True
    return reply.startswith("[") and split_messages(reply) != [reply]


class AgentHandler:
    """Answers plaintext and ``/agent <prompt>``; command-shaped answers are re-dispatched."""

    def __init__(self, generator: Optional[GenerativePort] = None):
        self._generator = generator

    @staticmethod
    def prompt_for(ctx: MessageContext) -> str:
        intent = ctx.parsed_intent
        if intent is None:
            return ""
        if intent.is_command:
            return str(intent.parameters.get(PROMPT_PARAM) or "").strip()
        return intent.raw_text.strip()

    async def __call__(self, ctx: MessageContext) -> None:
        if self._generator is None or not self._generator.is_configured:
            await ctx.reply(NO_API_KEY_REPLY)
            return

        prompt = self.prompt_for(ctx)
        if not prompt:
            return
        if CONFIG["msg_log"]:
            _log(f"[agent] prompt: {prompt[:200]}")

        try:
            result = await self._generator.generate(prompt, build_system_prompt(ctx))
        except MissingCredential:
            await ctx.reply(NO_API_KEY_REPLY)
            return
        except Exception as e:
            _log(f"[agent] generation failed: {e!r}")
            await ctx.reply(GENERATION_FAILED_REPLY)
            return

        reply = (result.reply or "").strip()
        if not reply:
            return
        if is_command_reply(reply, ctx.commands.sigil):
            if CONFIG["msg_log"]:
                _log(f"[agent] command reply: {reply}")
            await ctx.intent(reply)
        else:
            await ctx.reply(reply)
