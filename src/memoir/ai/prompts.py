"""Fixed prompt templates for the ten AI writing actions.

Each template pairs a system prompt with a builder that turns the request
body into the user message. The gateway never interprets the reply; for
``suggest-structure`` the caller parses the JSON array itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from memoir.errors import NotFoundError, ValidationError

STRUCTURE_ANSWER_PREVIEW = 150


@dataclass(frozen=True)
class PromptTemplate:
    action: str
    system_prompt: str
    build_user_content: Callable[[dict], str]


def _text(body: dict, key: str = "text", default: str = "") -> str:
    value = body.get(key)
    return default if value is None else str(value)


def _memories_text(value: Any) -> str:
    """Reference memories arrive preformatted, or as memory records."""
    if not value:
        return ""
    if isinstance(value, list):
        lines = []
        for m in value:
            if isinstance(m, dict):
                lines.append(f"[{m.get('stage', '')}] {m.get('question', '')}: {m.get('answer', '')}")
            else:
                lines.append(str(m))
        return "\n".join(lines)
    return str(value)


def _text_with_memories(heading: str) -> Callable[[dict], str]:
    def build(body: dict) -> str:
        memories = _memories_text(body.get("memories"))
        ctx = f"\n\n{heading}\n{memories}" if memories else ""
        return _text(body) + ctx

    return build


def _draft_opening(body: dict) -> str:
    memories = _memories_text(body.get("memories")) or "No specific memories provided."
    return f"Chapter title: {_text(body, 'title', 'Untitled')}\n\nReference memories:\n{memories}"


def _follow_up(body: dict) -> str:
    return f"Original question: {_text(body, 'question')}\n\nTheir answer: {_text(body, 'answer')}"


def _structure_summary(body: dict) -> str:
    memories = body.get("memories", [])
    if not isinstance(memories, list):
        raise ValidationError("memories must be a list")
    lines = []
    for n, m in enumerate(memories, start=1):
        m = m if isinstance(m, dict) else {}
        answer = str(m.get("answer") or "")[:STRUCTURE_ANSWER_PREVIEW]
        lines.append(f"{n}. [{m.get('stage', '')}] {m.get('question', '')}: {answer}...")
    return "\n".join(lines)


def _plain(body: dict) -> str:
    return _text(body)


TEMPLATES: dict[str, PromptTemplate] = {
    t.action: t
    for t in [
        PromptTemplate(
            "expand",
            "You are a warm, skilled memoir ghostwriter. Expand the following notes into vivid, "
            "first-person narrative prose suitable for a memoir. Maintain the author's voice. "
            "Be descriptive and emotionally resonant but not overwrought. Write 2-4 paragraphs.",
            _text_with_memories("Reference memories:"),
        ),
        PromptTemplate(
            "draft-opening",
            "You are a warm, skilled memoir ghostwriter. Write an opening draft for a memoir chapter. "
            "Use the chapter title and reference memories to craft a compelling, first-person "
            "narrative opening. Set the scene, draw the reader in, and weave in details from the "
            "memories naturally. Write 3-5 paragraphs. Be vivid but authentic: this is someone's "
            "real life.",
            _draft_opening,
        ),
        PromptTemplate(
            "polish",
            "You are a gentle, skilled memoir editor. Polish the following memoir text for clarity, "
            "flow, and emotional resonance. Preserve the author's voice and style. Fix grammar and "
            "awkward phrasing. Return only the improved text.",
            _plain,
        ),
        PromptTemplate(
            "follow-up",
            "You are a warm interviewer helping someone write their memoir. Based on their answer "
            "to a question, generate 3 thoughtful follow-up questions that dig deeper into the "
            "memory. Be specific and evocative. Format as a numbered list.",
            _follow_up,
        ),
        PromptTemplate(
            "continue",
            "You are a warm, skilled memoir ghostwriter. The author has written the following "
            "passage and needs you to seamlessly continue the narrative. Match their voice, tone, "
            "and style exactly. Continue the story naturally from where they left off. Write 2-3 "
            "paragraphs that flow directly from the existing text. Do NOT repeat any of the "
            "existing text.",
            _text_with_memories("Reference memories for context:"),
        ),
        PromptTemplate(
            "sensory-details",
            "You are a sensory detail specialist for memoir writing. Take the following memoir "
            "passage and enrich it with vivid sensory details (sights, sounds, smells, textures, "
            "and tastes) that bring the scene to life. Keep the same events and meaning, but make "
            "the reader feel like they are there. Preserve the author's voice. Return only the "
            "enriched text.",
            _plain,
        ),
        PromptTemplate(
            "dialogue",
            "You are a skilled memoir dialogue writer. Take the following memoir passage and "
            "transform the narrative descriptions of conversations into vivid, natural dialogue "
            "scenes. Add dialogue tags, body language, and small actions between lines of speech. "
            "Make the characters feel real and distinct. Keep the core events and meaning intact. "
            "Return only the rewritten text with dialogue.",
            _plain,
        ),
        PromptTemplate(
            "suggest-title",
            "You are a creative memoir chapter title advisor. Based on the following chapter "
            "content, suggest 5 evocative chapter titles that capture the essence of the story. "
            "Titles should be short (2-6 words), emotionally resonant, and intriguing. Format as "
            "a numbered list. Do not include any other text.",
            _plain,
        ),
        PromptTemplate(
            "summarize",
            "You are a memoir editor. Write a concise, compelling summary of the following chapter "
            "content in 2-3 sentences. Capture the key events, emotions, and themes. This summary "
            "will be used for table of contents and chapter planning. Write in third person.",
            _plain,
        ),
        PromptTemplate(
            "suggest-structure",
            "You are a memoir structure advisor. Based on these collected memories, suggest a "
            "chapter structure for the memoir. For each chapter, give a title and list which "
            "memory numbers should be included. Return valid JSON: an array of objects with "
            '"title" (string) and "memoryIndices" (array of 1-based numbers). Return ONLY the '
            "JSON array, no other text.",
            _structure_summary,
        ),
    ]
}


def get_template(action: str) -> PromptTemplate:
    try:
        return TEMPLATES[action]
    except KeyError:
        raise NotFoundError(f"Unknown AI action: {action}") from None
