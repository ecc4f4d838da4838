"""Listing copy generation with a template fallback."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from django.conf import settings

from .client import CompletionClient, CompletionError

logger = logging.getLogger(__name__)

COPYWRITER_PROMPT = (
    "You are an expert copywriter specializing in rental marketplace listings. "
    "Create compelling, accurate content that helps items get rented quickly."
)

TONE_INDICATORS = {
    "professional": ("professional", "premium", "quality", "reliable"),
    "casual": ("great", "awesome", "cool", "nice"),
    "friendly": ("lovely", "amazing", "wonderful", "excited"),
    "technical": ("specifications", "certified", "operational", "technical"),
}

DESCRIPTION_SUGGESTIONS = [
    "Consider adding specific dimensions or specifications",
    "Mention any included accessories or extras",
    "Highlight unique features that set this item apart",
    "Include care instructions or usage guidelines",
]


@dataclass
class GeneratedContent:
    generated_content: str
    word_count: int
    tone_score: float
    source: str
    alternatives: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    error: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "generated_content": self.generated_content,
            "word_count": self.word_count,
            "tone_score": self.tone_score,
            "source": self.source,
        }
        if self.alternatives:
            data["alternatives"] = self.alternatives
        if self.suggestions:
            data["suggestions"] = self.suggestions
        return data


def word_count(text: str) -> int:
    return len(text.split())


def tone_score(content: str, tone: str) -> float:
    """6 plus 1.5 per tone keyword present, capped at 10."""
    lowered = content.lower()
    matches = sum(1 for word in TONE_INDICATORS.get(tone, ()) if word in lowered)
    return min(10.0, 6 + matches * 1.5)


def _build_prompt(kind: str, context: dict[str, Any], tone: str, length: str) -> str:
    category = context.get("category") or "item"
    condition = context.get("condition") or "good"
    context_json = json.dumps(context, sort_keys=True)
    if kind == "title":
        return (
            f"Create a compelling rental listing title for a {category} in {condition} "
            f"condition.\nTone: {tone}. Make it engaging and clickable while being accurate.\n"
            f"Context: {context_json}\nReturn only the title, no explanations."
        )
    if kind == "description":
        return (
            f"Write a {length} rental listing description for a {category} in {condition} "
            f"condition.\nTone: {tone}. Include relevant details that would help renters "
            f"make a decision.\nContext: {context_json}\n"
            "Make it compelling but honest. Focus on benefits and practical information."
        )
    return (
        f"Generate relevant tags for a rental listing of a {category} in {condition} "
        f"condition.\nContext: {context_json}\n"
        "Return 5-8 tags separated by commas. Focus on searchable keywords that renters "
        "might use."
    )


def fallback_content(kind: str, context: dict[str, Any]) -> str:
    category = context.get("category")
    condition = context.get("condition")
    if kind == "title":
        if category:
            return f"Premium {category} Available for Rent"
        return "Quality Item Available for Rent"
    if kind == "description":
        parts = ["This well-maintained item is perfect for your rental needs."]
        if condition:
            parts.append(f"In {condition} condition.")
        if context.get("price_range"):
            parts.append(f"Competitively priced within the {context['price_range']} range.")
        parts.append("Contact for more details and availability.")
        return " ".join(parts)
    return ", ".join(["rental", "available", "quality", condition or "good-condition"])


def _completion_kwargs() -> dict[str, Any]:
    return {
        "max_tokens": int(getattr(settings, "AI_MAX_TOKENS", 1000)),
        "temperature": float(getattr(settings, "AI_TEMPERATURE", 0.7)),
    }


def _alternatives(client: CompletionClient, title: str, context: dict[str, Any]) -> list[str]:
    prompt = (
        "Create 2 alternative titles for the same rental listing with different approaches "
        f'(more casual, more professional).\nOriginal: "{title}"\n'
        f"Context: {json.dumps(context, sort_keys=True)}\n"
        "Return only the alternatives, one per line."
    )
    try:
        reply = client.complete(prompt, **_completion_kwargs())
    except CompletionError:
        logger.info("assistant: title alternatives unavailable", exc_info=True)
        return []
    return [line.strip() for line in reply.splitlines() if line.strip()][:2]


def generate_content(
    client: CompletionClient,
    *,
    kind: str,
    context: dict[str, Any],
    tone: str = "friendly",
    length: str = "medium",
) -> GeneratedContent:
    """
    Ask the completion client for listing copy.

    Any completion failure is swallowed and replaced by template text; the
    returned object records the error so callers can log it.
    """
    try:
        text = client.complete(
            _build_prompt(kind, context, tone, length),
            system_prompt=COPYWRITER_PROMPT,
            **_completion_kwargs(),
        )
    except CompletionError as exc:
        text = fallback_content(kind, context)
        return GeneratedContent(
            generated_content=text,
            word_count=word_count(text),
            tone_score=7.0,
            source="template",
            suggestions=["Consider providing more specific details for better AI generation"],
            error=str(exc),
        )

    result = GeneratedContent(
        generated_content=text,
        word_count=word_count(text),
        tone_score=tone_score(text, tone),
        source="ai",
    )
    if kind == "title":
        result.alternatives = _alternatives(client, text, context)
    elif kind == "description":
        result.suggestions = list(DESCRIPTION_SUGGESTIONS)
    return result
