"""Anthropic gateway: one system prompt + one user message in, ``{text}`` or ``{error}`` out."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import anthropic

from memoir.config import AIConfig

logger = logging.getLogger(__name__)

NOT_CONFIGURED = (
    "API key not configured. Set ANTHROPIC_API_KEY in the environment or [ai] api_key in memoir.toml."
)


@dataclass
class AIResult:
    """Outcome of one completion. Exactly one of ``text`` / ``error`` is set."""

    text: str | None = None
    error: str | None = None
    model: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def as_payload(self) -> dict:
        return {"text": self.text} if self.ok else {"error": self.error}


def _status_error_message(e: anthropic.APIStatusError) -> str:
    body = e.body
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return err["message"]
    return e.message or "Unknown API error"


class AIGateway:
    """Direct Anthropic API via the `anthropic` SDK. No retries, no streaming."""

    def __init__(self, config: AIConfig) -> None:
        self.config = config
        self._client: anthropic.Anthropic | None = None
        if config.configured:
            self._client = anthropic.Anthropic(
                api_key=config.api_key,
                timeout=config.timeout,
                max_retries=0,
            )

    async def complete(self, system_prompt: str, user_content: str) -> AIResult:
        """Never raises: every failure comes back as ``AIResult(error=...)``."""
        if self._client is None:
            return AIResult(error=NOT_CONFIGURED)

        kwargs: dict = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_content}],
        }

        # The SDK call blocks; keep the event loop free for other requests
        try:
            response = await asyncio.to_thread(self._client.messages.create, **kwargs)
        except anthropic.APIStatusError as e:
            logger.error("Anthropic API error (status %s): %s", e.status_code, e)
            return AIResult(error=_status_error_message(e))
        except anthropic.APIConnectionError as e:
            logger.error("Anthropic API unreachable: %s", e)
            return AIResult(error=f"API request failed: {e}")
        except Exception as e:
            logger.exception("Unexpected AI gateway failure")
            return AIResult(error=str(e) or "Unknown AI error")

        text = response.content[0].text if response.content else ""
        return AIResult(text=text, model=getattr(response, "model", None))
