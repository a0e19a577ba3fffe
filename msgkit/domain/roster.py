"""Roster resolution — normalizes conversation members for one message.

Identifier casing is inconsistent across transports and clients, so every
address and inbox id is lowercased before any comparison. The result is
rebuilt for every incoming message and never cached.
"""

from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from msgkit.domain.models import RosterMember
from msgkit.ports.inbound import RawMember

SENDER_ALIAS = "me"
SELF_ALIAS = "bot"


class RosterProvider(Protocol):
    """Strategy supplying extra members and aliases (demo / offline testing)."""

    def members(self) -> List[RawMember]: ...

    def alias_for(self, address: str) -> Optional[str]: ...


# Demo accounts used when running against the in-memory transport
FIXTURE_USERS: Sequence[RawMember] = (
    RawMember(
        inbox_id="da3750159ea7541dda1e271076a3663d8c14576ab85bbd3416d45c9f19e35cbc",
        account_addresses=["0x3a044b218BaE80E5b9E16609443A192129A67BeA"],
        username="alix",
    ),
    RawMember(
        inbox_id="6196afe3fd16c276113b0e4fc913745c39af337ea869fb49a2835201874de49c",
        account_addresses=["0xeAc10D864802fCcfe897E3957776634D1AE006B2"],
        username="eva",
    ),
    RawMember(
        inbox_id="8d833f5419cbbfda027813e1fcd1db86c9ec320fd22fbe182883c47a7f34adc0",
        account_addresses=["0xbc3246461ab5e1682baE48fa95172CDf0689201a"],
        username="bo",
    ),
)

FIXTURE_ALIASES: Dict[str, str] = {
    "0xc16c47ea4a9f6ba81664f7623245b2c7429c71dc": "fabridesktop",
}


class FixtureRosterProvider:
    """Resolves known demo addresses to usernames and appends missing demo users."""

    def __init__(
        self,
        users: Iterable[RawMember] = FIXTURE_USERS,
        aliases: Optional[Dict[str, str]] = None,
    ):
        self._users = list(users)
        self._aliases = {k.lower(): v.lower() for k, v in (aliases or FIXTURE_ALIASES).items()}
        for user in self._users:
            if user.username:
                for addr in user.account_addresses:
                    self._aliases.setdefault(addr.lower(), user.username.lower())

    def members(self) -> List[RawMember]:
        return list(self._users)

    def alias_for(self, address: str) -> Optional[str]:
        return self._aliases.get(address.lower())


def _primary_address(raw: RawMember) -> str:
    for addr in raw.account_addresses:
        if addr:
            return addr.lower()
    return (raw.inbox_id or "").lower()


def resolve(
    raw_members: Optional[Sequence[RawMember]],
    self_address: str,
    sender_id: str,
    provider: Optional[RosterProvider] = None,
) -> List[RosterMember]:
    """Normalize ``raw_members`` into RosterMembers.

    - the member matching ``sender_id`` (inbox id or address) is aliased ``me``
    - the member whose address is ``self_address`` is aliased ``bot``
    - other members take the provider alias, their own username, or their address
    - duplicate addresses are dropped, first occurrence wins
    - with a provider, its members missing from the conversation are appended
    """
    if not raw_members and provider is not None:
        raw_members = provider.members()

    self_addr = (self_address or "").lower()
    sender = (sender_id or "").lower()
    seen = set()
    sender_marked = False
    self_marked = False
    roster: List[RosterMember] = []

    for raw in raw_members or ():
        address = _primary_address(raw)
        if not address or address in seen:
            continue
        seen.add(address)
        addresses = tuple(a.lower() for a in raw.account_addresses if a) or (address,)
        inbox_id = (raw.inbox_id or "").lower()

        is_sender = not sender_marked and bool(sender) and sender in (inbox_id, *addresses)
        is_self = not self_marked and bool(self_addr) and self_addr in addresses
        sender_marked = sender_marked or is_sender
        self_marked = self_marked or is_self

        alias = provider.alias_for(address) if provider is not None else None
        handle = alias or (raw.username or "").lower()
        if is_sender:
            username = SENDER_ALIAS
        elif is_self:
            username = SELF_ALIAS
        else:
            username = handle or address

        roster.append(RosterMember(
            address=address,
            inbox_id=inbox_id,
            username=username,
            account_addresses=addresses,
            is_sender=is_sender,
            is_self=is_self,
            handle=handle,
        ))

    if provider is not None:
        for raw in provider.members():
            address = _primary_address(raw)
            if not address or address in seen:
                continue
            seen.add(address)
            roster.append(RosterMember(
                address=address,
                inbox_id=(raw.inbox_id or "").lower(),
                username=(raw.username or "").lower() or address,
                handle=(raw.username or "").lower(),
                account_addresses=(address,),
                is_fixture=True,
            ))

    return roster


def find_member(roster: Sequence[RosterMember], handle: str) -> Optional[RosterMember]:
    """Look up ``@handle`` by username, transport handle, address or inbox id.

    Matching is case-insensitive. Aliases (``me``, ``bot``) win over handles,
    so a sender can be mentioned both as ``@me`` and by their own name.
    """
    key = (handle or "").strip().lstrip("@").lower()
    if not key:
        return None
    for member in roster:
        if member.username == key:
            return member
    for member in roster:
        if member.handle and member.handle == key:
            return member
    for member in roster:
        if key == member.inbox_id or key in member.account_addresses:
            return member
    return None


def find_by_inbox_id(roster: Sequence[RosterMember], inbox_id: str) -> Optional[RosterMember]:
    key = (inbox_id or "").lower()
    return next((m for m in roster if m.inbox_id == key), None)
