"""Tests for the AI gateway (mocked Anthropic client) and prompt templates."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import anthropic
import httpx
import pytest

from memoir.ai.gateway import NOT_CONFIGURED, AIGateway, AIResult
from memoir.ai.prompts import STRUCTURE_ANSWER_PREVIEW, TEMPLATES, get_template
from memoir.config import AIConfig
from memoir.errors import NotFoundError, ValidationError

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def _reply(text: str) -> SimpleNamespace:
    return SimpleNamespace(content=[SimpleNamespace(text=text)], model="claude-test")


class TestAIGateway:
    @pytest.fixture
    def gateway(self) -> AIGateway:
        gw = AIGateway(AIConfig(api_key="sk-test", model="claude-test", max_tokens=100))
        gw._client = MagicMock()
        return gw

    @pytest.mark.asyncio
    async def test_not_configured(self):
        gw = AIGateway(AIConfig(api_key=""))
        assert gw._client is None
        result = await gw.complete("sys", "user")
        assert result.error == NOT_CONFIGURED
        assert "API key not configured" in result.as_payload()["error"]

    @pytest.mark.asyncio
    async def test_placeholder_key_not_configured(self):
        result = await AIGateway(AIConfig(api_key="your-api-key-here")).complete("s", "u")
        assert result.ok is False

    @pytest.mark.asyncio
    async def test_complete_success(self, gateway: AIGateway):
        gateway._client.messages.create.return_value = _reply("Once upon a time")

        result = await gateway.complete("You are a ghostwriter.", "Expand this")

        assert result.ok
        assert result.as_payload() == {"text": "Once upon a time"}
        assert result.model == "claude-test"
        kwargs = gateway._client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["max_tokens"] == 100
        assert kwargs["system"] == "You are a ghostwriter."
        assert kwargs["messages"] == [{"role": "user", "content": "Expand this"}]

    @pytest.mark.asyncio
    async def test_empty_content(self, gateway: AIGateway):
        gateway._client.messages.create.return_value = SimpleNamespace(content=[], model="m")
        result = await gateway.complete("s", "u")
        assert result.as_payload() == {"text": ""}

    @pytest.mark.asyncio
    async def test_upstream_error_message_passed_through(self, gateway: AIGateway):
        gateway._client.messages.create.side_effect = anthropic.BadRequestError(
            "bad request",
            response=httpx.Response(400, request=_REQUEST),
            body={"type": "error", "error": {"type": "invalid_request_error", "message": "max_tokens too large"}},
        )
        result = await gateway.complete("s", "u")
        assert result.as_payload() == {"error": "max_tokens too large"}

    @pytest.mark.asyncio
    async def test_connection_error(self, gateway: AIGateway):
        gateway._client.messages.create.side_effect = anthropic.APIConnectionError(request=_REQUEST)
        result = await gateway.complete("s", "u")
        assert result.error.startswith("API request failed")

    @pytest.mark.asyncio
    async def test_unexpected_error(self, gateway: AIGateway):
        gateway._client.messages.create.side_effect = RuntimeError("boom")
        result = await gateway.complete("s", "u")
        assert result.error == "boom"

    def test_result_payload(self):
        assert AIResult(text="x").as_payload() == {"text": "x"}
        assert AIResult(error="e").as_payload() == {"error": "e"}


class TestPrompts:
    def test_registry(self):
        assert set(TEMPLATES) == {
            "expand",
            "draft-opening",
            "polish",
            "follow-up",
            "continue",
            "sensory-details",
            "dialogue",
            "suggest-title",
            "summarize",
            "suggest-structure",
        }

    def test_unknown_action(self):
        with pytest.raises(NotFoundError):
            get_template("translate")

    def test_expand_with_memories(self):
        content = get_template("expand").build_user_content(
            {"text": "We moved.", "memories": "[Childhood] Home?: A farm"}
        )
        assert content == "We moved.\n\nReference memories:\n[Childhood] Home?: A farm"

    def test_expand_without_memories(self):
        assert get_template("expand").build_user_content({"text": "We moved."}) == "We moved."

    def test_continue_formats_memory_records(self):
        content = get_template("continue").build_user_content(
            {"text": "Then", "memories": [{"stage": "S", "question": "Q", "answer": "A"}]}
        )
        assert content.endswith("Reference memories for context:\n[S] Q: A")

    def test_draft_opening_defaults(self):
        content = get_template("draft-opening").build_user_content({})
        assert content.startswith("Chapter title: Untitled")
        assert "No specific memories provided." in content

    def test_follow_up(self):
        content = get_template("follow-up").build_user_content(
            {"question": "First pet?", "answer": "A dog"}
        )
        assert content == "Original question: First pet?\n\nTheir answer: A dog"

    @pytest.mark.parametrize("action", ["polish", "sensory-details", "dialogue", "suggest-title", "summarize"])
    def test_plain_actions_send_text(self, action: str):
        assert get_template(action).build_user_content({"text": "Hello"}) == "Hello"

    def test_structure_numbers_and_truncates(self):
        long_answer = "x" * (STRUCTURE_ANSWER_PREVIEW + 50)
        content = get_template("suggest-structure").build_user_content(
            {
                "memories": [
                    {"stage": "School Years", "question": "Teacher?", "answer": "Mrs. Lee"},
                    {"stage": "Career", "question": "Job?", "answer": long_answer},
                ]
            }
        )
        lines = content.split("\n")
        assert lines[0] == "1. [School Years] Teacher?: Mrs. Lee..."
        assert lines[1] == f"2. [Career] Job?: {'x' * STRUCTURE_ANSWER_PREVIEW}..."

    def test_structure_rejects_non_list(self):
        with pytest.raises(ValidationError):
            get_template("suggest-structure").build_user_content({"memories": "nope"})

    def test_structure_prompt_asks_for_json(self):
        assert "memoryIndices" in get_template("suggest-structure").system_prompt
