"""OpenAI chat-completions adapter — implements GenerativePort."""

import asyncio
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

import aiohttp

from msgkit.config import AppConfig, GenerationConfig
from msgkit.domain.errors import GenerationError, MissingCredential
from msgkit.ports.outbound import GenerationResult

NO_KEY_MESSAGE = "No OpenAI API key found"


def _log(msg: str):
    print(msg, file=sys.stderr)


class OpenAIGenerator:
    """Single-turn text generation over the OpenAI HTTP API."""

    max_retries = 3

    def __init__(self, config: Optional[GenerationConfig] = None, temperature: float = 0.2):
        self._config = config or AppConfig.from_env().generation
        self._temperature = temperature

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    @property
    def url(self) -> str:
        return f"{self._config.base_url.rstrip('/')}/chat/completions"

    def build_messages(self, prompt: str, system_prompt: Optional[str]) -> List[Dict[str, str]]:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages

    def build_payload(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        return {
            "model": self._config.model,
            "messages": messages,
            "temperature": self._temperature,
        }

    @staticmethod
    def extract_reply(data: Dict[str, Any]) -> str:
        try:
            return (data["choices"][0]["message"]["content"] or "").strip()
        except (KeyError, IndexError, TypeError):
            raise GenerationError(f"Unexpected response shape: {str(data)[:200]}")

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> GenerationResult:
        if not self.is_configured:
            raise MissingCredential(NO_KEY_MESSAGE)

        messages = self.build_messages(prompt, system_prompt)
        headers = {"Authorization": f"Bearer {self._config.api_key}"}
        timeout = aiohttp.ClientTimeout(total=self._config.timeout)
        _log(f"[{datetime.now().isoformat()}] Generating with {self._config.model}")

        for attempt in range(self.max_retries):
            try:
                async with aiohttp.ClientSession(timeout=timeout) as session:
                    async with session.post(self.url, headers=headers, json=self.build_payload(messages)) as resp:
                        if resp.status == 401:
                            raise MissingCredential("OpenAI API key was rejected")
                        if resp.status == 429 or resp.status >= 500:
                            if attempt < self.max_retries - 1:
                                await asyncio.sleep(min(2 ** attempt, 30))
                                continue
                            raise GenerationError(f"HTTP {resp.status} after {self.max_retries} attempts")
                        if resp.status >= 400:
                            body = await resp.text()
                            raise GenerationError(f"HTTP {resp.status}: {body[:200]}")
                        data = await resp.json()
            except (MissingCredential, GenerationError):
                raise
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                if attempt == self.max_retries - 1:
                    raise GenerationError(f"Request failed: {e!r}") from e
                await asyncio.sleep(min(2 ** attempt, 30))
                continue

            reply = self.extract_reply(data)
            return GenerationResult(
                reply=reply,
                history=messages + [{"role": "assistant", "content": reply}],
            )

        raise GenerationError("Max retries exceeded")
