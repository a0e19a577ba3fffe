"""Intent parsing — slash commands with typed parameters.

Pure Python, no transport dependencies.

Parsing is forgiving: text that looks like a command but does not match a
registered trigger, or that leaves a required parameter unbound, comes back
as plaintext so it can still reach the agent handler.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from msgkit.domain.commands import CommandRegistry
from msgkit.domain.models import (
    CommandSchema,
    IntentKind,
    ParamKind,
    ParamSpec,
    ParsedIntent,
    RosterMember,
)
from msgkit.domain.roster import find_member

TOKEN_RE = re.compile(r"\S+")
NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")
ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
NAMED_RE = re.compile(r"^(?P<name>[A-Za-z_][\w-]*)=(?P<value>.+)$")

_UNBOUND = object()


def parse(
    text: str,
    registry: CommandRegistry,
    roster: Sequence[RosterMember],
    sigil: Optional[str] = None,
) -> ParsedIntent:
    """Parse ``text`` into a command intent or plaintext."""
    raw = text or ""
    sigil = sigil or registry.sigil
    if not raw.startswith(sigil):
        return ParsedIntent.plaintext(raw)
    stripped = raw.rstrip()

    tokens = list(TOKEN_RE.finditer(stripped))
    schema = registry.lookup(tokens[0].group())
    if schema is None:
        return ParsedIntent.plaintext(raw)

    parameters = bind_parameters(schema, stripped, tokens[1:], roster)
    if parameters is None:
        return ParsedIntent.plaintext(raw, rejected_trigger=schema.trigger)

    return ParsedIntent(
        kind=IntentKind.COMMAND,
        raw_text=raw,
        trigger=schema.trigger,
        parameters=parameters,
        schema=schema,
    )


def bind_parameters(
    schema: CommandSchema,
    line: str,
    tokens: Sequence[re.Match],
    roster: Sequence[RosterMember],
) -> Optional[Dict[str, Any]]:
    """Bind ``tokens`` to ``schema.params`` in order.

    ``name=value`` tokens at the cursor bind the named parameter. Returns
    None when a required parameter stays unbound.
    """
    specs = {p.name.lower(): p for p in schema.params if p.kind not in (ParamKind.TEXT, ParamKind.USER_MENTIONS)}
    bound: Dict[str, Any] = {}
    cursor = 0

    for spec in schema.params:
        cursor = _absorb_named(tokens, cursor, specs, bound)
        if spec.name in bound:
            continue
        value, cursor = _bind_one(spec, line, tokens, cursor, roster)
        if value is _UNBOUND:
            if spec.required:
                return None
            value = spec.default
        bound[spec.name] = value

    # Leftover tokens are ignored
    return bound


def _absorb_named(tokens, cursor: int, specs: Dict[str, ParamSpec], bound: Dict[str, Any]) -> int:
    while cursor < len(tokens):
        m = NAMED_RE.match(tokens[cursor].group())
        if not m:
            break
        spec = specs.get(m.group("name").lower())
        if spec is None or spec.name in bound:
            break
        value = _convert(spec, m.group("value"))
        if value is _UNBOUND:
            break
        bound[spec.name] = value
        cursor += 1
    return cursor


def _bind_one(
    spec: ParamSpec,
    line: str,
    tokens: Sequence[re.Match],
    cursor: int,
    roster: Sequence[RosterMember],
) -> Tuple[Any, int]:
    if cursor >= len(tokens):
        return _UNBOUND, cursor

    if spec.kind is ParamKind.TEXT:
        remainder = line[tokens[cursor].start():].strip()
        return (remainder or _UNBOUND), len(tokens)

    if spec.kind is ParamKind.USER_MENTIONS:
        handles: List[str] = []
        while cursor < len(tokens) and tokens[cursor].group().startswith("@"):
            handles.extend(h for h in tokens[cursor].group().split(",") if h.strip(" ,"))
            cursor += 1
        members = resolve_mentions(handles, roster)
        return (members or _UNBOUND), cursor

    value = _convert(spec, tokens[cursor].group())
    if value is _UNBOUND:
        return _UNBOUND, cursor
    return value, cursor + 1


def _convert(spec: ParamSpec, token: str) -> Any:
    if spec.kind is ParamKind.WORD:
        return token
    if spec.kind is ParamKind.NUMBER:
        if not NUMBER_RE.match(token):
            return _UNBOUND
        return float(token) if "." in token else int(token)
    if spec.kind is ParamKind.ENUM:
        for choice in spec.choices:
            if choice.lower() == token.lower():
                return choice
        return _UNBOUND
    if spec.kind is ParamKind.ADDRESS:
        return token.lower() if ADDRESS_RE.match(token) else _UNBOUND
    return _UNBOUND


def resolve_mentions(handles: Sequence[str], roster: Sequence[RosterMember]) -> List[RosterMember]:
    """Resolve ``@handle`` tokens in order; unknown handles and duplicates are dropped."""
    resolved: List[RosterMember] = []
    seen = set()
    for handle in handles:
        member = find_member(roster, handle.strip().rstrip(",.;:!?"))
        if member is None or member.address in seen:
            continue
        seen.add(member.address)
        resolved.append(member)
    return resolved
