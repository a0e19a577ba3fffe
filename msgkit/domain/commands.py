"""Command schema registry — built once at startup, read-only afterwards."""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from msgkit.config import COMMAND_SIGIL
from msgkit.domain.models import CommandGroup, CommandSchema


class CommandRegistry:
    """Static table of command groups, looked up by trigger."""

    def __init__(self, groups: Sequence[CommandGroup] = (), sigil: str = COMMAND_SIGIL):
        self._sigil = sigil
        self._groups: Tuple[CommandGroup, ...] = tuple(groups)
        by_trigger: Dict[str, CommandSchema] = {}
        for group in self._groups:
            for schema in group.commands:
                key = schema.trigger.lower()
                if not key.startswith(sigil) or len(key) == len(sigil) or " " in key:
                    raise ValueError(f"Invalid trigger {schema.trigger!r} in group {group.name!r}")
                if key in by_trigger:
                    raise ValueError(f"Duplicate trigger {schema.trigger!r}")
                names = [p.name for p in schema.params]
                if len(names) != len(set(names)):
                    raise ValueError(f"Duplicate parameter name in {schema.trigger!r}")
                by_trigger[key] = schema
        self._by_trigger = by_trigger

    @property
    def sigil(self) -> str:
        return self._sigil

    def lookup(self, trigger: str) -> Optional[CommandSchema]:
        return self._by_trigger.get((trigger or "").lower())

    def all(self) -> Tuple[CommandSchema, ...]:
        return tuple(s for g in self._groups for s in g.commands)

    def groups(self) -> Tuple[CommandGroup, ...]:
        return self._groups

    def __contains__(self, trigger: str) -> bool:
        return self.lookup(trigger) is not None

    def __len__(self) -> int:
        return len(self._by_trigger)

    def help_text(self) -> str:
        """Help listing, one line per command."""
        lines: List[str] = ["Available commands:"]
        for group in self._groups:
            lines.append("")
            lines.append(f"**{group.name}**" + (f" — {group.description}" if group.description else ""))
            for schema in group.commands:
                line = f"`{schema.usage}`"
                if schema.description:
                    line += f" — {schema.description}"
                lines.append(line)
        return "\n".join(lines)

    def describe(self) -> List[Dict[str, Any]]:
        """JSON-able listing (agent system prompt, HTTP /commands)."""
        return [
            {
                "name": group.name,
                "description": group.description,
                "commands": [
                    {
                        "command": schema.usage,
                        "trigger": schema.trigger,
                        "description": schema.description,
                        "params": {
                            p.name: {
                                "type": p.kind.value,
                                "required": p.required,
                                **({"values": list(p.choices)} if p.choices else {}),
                                **({"default": p.default} if p.default is not None else {}),
                            }
                            for p in schema.params
                        },
                    }
                    for schema in group.commands
                ],
            }
            for group in self._groups
        ]
