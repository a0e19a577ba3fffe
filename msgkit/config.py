"""Configuration and shared state."""

__version__ = "0.1.0"

import os
import sys
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

_stderr_print = lambda *a, **kw: print(*a, **kw, file=sys.stderr)


def _env_bool(key: str, default: str = "false") -> bool:
    return os.getenv(key, default).strip().lower() in ("1", "true", "yes", "on")


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        _stderr_print(f"Invalid {key}={raw!r}, falling back to {default}")
        return default


COMMAND_SIGIL = os.getenv("COMMAND_SIGIL", "/").strip() or "/"
if len(COMMAND_SIGIL) != 1:
    _stderr_print(f"COMMAND_SIGIL must be a single character, got {COMMAND_SIGIL!r}; using '/'")
    COMMAND_SIGIL = "/"

MAX_INTENT_DEPTH = _env_int("MAX_INTENT_DEPTH", 5)
if MAX_INTENT_DEPTH < 1:
    _stderr_print(f"MAX_INTENT_DEPTH={MAX_INTENT_DEPTH} is below 1, falling back to 5")
    MAX_INTENT_DEPTH = 5

CONFIG = {
    "port": _env_int("PORT", 3000),
    "command_sigil": COMMAND_SIGIL,
    "max_intent_depth": MAX_INTENT_DEPTH,
    # Verbose per-message logging
    "msg_log": _env_bool("MSG_LOG"),
    # Generative backend
    "openai_api_key": os.getenv("OPENAI_API_KEY", "") or os.getenv("OPEN_AI_API_KEY", ""),
    "openai_model": os.getenv("OPENAI_MODEL", "gpt-4o"),
    "openai_base_url": os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/"),
    "generation_timeout": _env_int("GENERATION_TIMEOUT", 60),
    # Demo roster (alix / eva / bo) for offline testing
    "use_fixture_roster": _env_bool("USE_FIXTURE_ROSTER"),
}


# ── Typed config ─────────────────────────────────────────────


@dataclass
class GenerationConfig:
    api_key: str = ""
    model: str = "gpt-4o"
    base_url: str = "https://api.openai.com/v1"
    timeout: int = 60

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


@dataclass
class AppConfig:
    """Typed configuration, built once by the host."""

    port: int = 3000
    command_sigil: str = "/"
    max_intent_depth: int = 5
    use_fixture_roster: bool = False
    generation: GenerationConfig = field(default_factory=GenerationConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create AppConfig from environment variables."""
        return cls(
            port=CONFIG["port"],
            command_sigil=CONFIG["command_sigil"],
            max_intent_depth=CONFIG["max_intent_depth"],
            use_fixture_roster=CONFIG["use_fixture_roster"],
            generation=GenerationConfig(
                api_key=CONFIG["openai_api_key"],
                model=CONFIG["openai_model"],
                base_url=CONFIG["openai_base_url"],
                timeout=CONFIG["generation_timeout"],
            ),
        )
