"""Group administration — narration for group changes and /add /remove /name."""

import random
import sys
from typing import List, Optional, Sequence

from msgkit.domain.context import MessageContext
from msgkit.domain.errors import TransportError
from msgkit.domain.models import GroupChangePayload, RosterMember
from msgkit.domain.roster import SELF_ALIAS, find_by_inbox_id

WELCOME_MESSAGES = [
    "Welcome, {names}! 🎉 @{admin} minted a fresh token just for you!",
    "Hey {names}! 👋 @{admin} says you're headed to the moon with us!",
    "Welcome aboard, {names}! 🛳️ @{admin} put you on the whitelist!",
    "{names}, welcome to the group! 😎 @{admin} swears it's fully decentralized!",
    "{names} just joined the chat! 🚀 @{admin} saved you a seat!",
    "Hey {names}, welcome! ⛽ @{admin} covered your gas fees!",
]

FAREWELL_MESSAGES = [
    "See ya! 👋 Mind the blockchain on your way out, says @{admin}.",
    "@{admin} won't miss the buggy code!",
    "🪦",
    "☠️☠️☠️",
    "👻",
    "hasta la vista, baby",
    "nuked ☠️💣 by @{admin}",
]

RENAME_MESSAGES = [
    "The group was just renamed to '{name}'! 📝 @{admin} is scrambling to update the smart contracts!",
    "The group name is now '{name}'! 🎉 @{admin} is rewriting the blockchain in a panic!",
    "New group name: '{name}'! 🔄 @{admin} is checking whether it's hashable!",
    "Heads up, the group is now '{name}'! 🕵️ @{admin} is on a secret mission to encode it!",
    "It's official, '{name}' is the new group name! 🚀 @{admin} is launching it into crypto space!",
    "Say hello to '{name}'! 🧙 @{admin} just cast a renaming spell!",
]

ADD_FAILED_REPLY = "User already exists or admin privileges"
REMOVE_FAILED_REPLY = "User doesn't exist or admin privileges"
RENAME_FAILED_REPLY = "No admin privileges"
GROUP_NAME_FIELD = "group_name"
DEFAULT_ADMIN_NAME = "Admin"


def _log(msg: str):
    print(msg, file=sys.stderr)


def mention_names(inbox_ids: Sequence[str], members: Sequence[RosterMember]) -> str:
    """``@name`` for each member whose inbox id is listed, comma separated."""
    wanted = {i.lower() for i in inbox_ids}
    names = [m.mention for m in members if m.inbox_id in wanted and m.username]
    return ", ".join(names)


class AdminHandler:
    """Narrates group changes and runs the membership commands."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    # -- Narration --

    def welcome(self, added_inboxes: Sequence[str], members: Sequence[RosterMember], admin: str) -> str:
        names = mention_names(added_inboxes, members)
        if not names:
            return ""
        return self._rng.choice(WELCOME_MESSAGES).format(names=names, admin=admin)

    def farewell(self, admin: str) -> str:
        return self._rng.choice(FAREWELL_MESSAGES).format(admin=admin)

    def rename(self, name: str, admin: str) -> str:
        return self._rng.choice(RENAME_MESSAGES).format(name=name, admin=admin)

    def narrate(self, change: GroupChangePayload, members: Sequence[RosterMember]) -> str:
        """One narration line for a group change, or "" when there is nothing to say."""
        initiator = find_by_inbox_id(members, change.initiated_by_inbox_id)
        admin = initiator.username if initiator is not None else DEFAULT_ADMIN_NAME

        if change.added_inboxes:
            return self.welcome(change.added_inboxes, members, admin)
        if change.removed_inboxes:
            return self.farewell(admin)
        if change.metadata_field_changes:
            first = change.metadata_field_changes[0]
            if first.field_name == GROUP_NAME_FIELD:
                return self.rename(first.new_value, admin)
        return ""

    # -- Handlers --

    async def __call__(self, ctx: MessageContext) -> None:
        change = ctx.content
        if not isinstance(change, GroupChangePayload):
            return
        message = self.narrate(change, ctx.members)
        if message:
            await ctx.reply(message)

    async def add(self, ctx: MessageContext) -> None:
        users: List[RosterMember] = ctx.parsed_intent.parameters["users"]
        inbox_ids = [u.inbox_id for u in users if u.inbox_id]
        try:
            await ctx.conversation.sync()
            await ctx.conversation.add_members(inbox_ids)
            await ctx.conversation.sync()
        except TransportError as e:
            _log(f"[admin] add {inbox_ids} failed: {e}")
            await ctx.reply(ADD_FAILED_REPLY)
            return
        await ctx.reply(self.welcome(inbox_ids, users, SELF_ALIAS) or f"Added {len(inbox_ids)} member(s).")

    async def remove(self, ctx: MessageContext) -> None:
        users: List[RosterMember] = ctx.parsed_intent.parameters["users"]
        addresses = [u.address for u in users]
        try:
            await ctx.conversation.sync()
            await ctx.conversation.remove_members(addresses)
        except TransportError as e:
            _log(f"[admin] remove {addresses} failed: {e}")
            await ctx.reply(REMOVE_FAILED_REPLY)
            return
        await ctx.reply(self.farewell(SELF_ALIAS))

    async def name(self, ctx: MessageContext) -> None:
        new_name: str = ctx.parsed_intent.parameters["name"]
        try:
            await ctx.conversation.update_name(new_name)
        except TransportError as e:
            _log(f"[admin] rename to {new_name!r} failed: {e}")
            await ctx.reply(RENAME_FAILED_REPLY)
            return
        await ctx.reply(self.rename(new_name, SELF_ALIAS))
