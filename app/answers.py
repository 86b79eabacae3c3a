from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List

from app.search import SearchResult

logger = logging.getLogger(__name__)


NOT_FOUND_MESSAGE = (
    "I couldn't find any relevant information about that topic in the knowledge base. "
    "Please try asking about a different topic."
)

PREVIEW_CHARS = 150


@dataclass
class ChatAnswer:
    response: str
    context: str
    used_fallback: bool = False
    previews: List[Dict[str, object]] = field(default_factory=list)


def chunk_preview(text: str, max_chars: int = PREVIEW_CHARS) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


def build_context_block(results: List[SearchResult]) -> str:
    parts: List[str] = []
    for i, r in enumerate(results, start=1):
        parts.append(f"[Chunk {i}] {r.title} ({r.category}):\n{r.text}")
    return "\n\n".join(parts)


def build_fallback_answer(results: List[SearchResult]) -> str:
    """Templated keyword-style summary used when generation is unavailable."""
    lines: List[str] = ["Based on the knowledge base, here's what I found:", ""]

    for i, r in enumerate(results, start=1):
        lines.append(f"**{i}. {r.title}** ({r.category}) - Relevance: {r.relevance:.1f}")
        lines.append("")
        lines.append(r.text)
        lines.append("")
        if r.context:
            lines.append(f"*Context: {r.context}*")
            lines.append("")
        lines.append("---")
        lines.append("")

    if len(results) > 1:
        lines.append(
            f"**Summary:** I found {len(results)} relevant pieces of information in the knowledge base. "
            "The results are ordered by relevance to your query."
        )

    return "\n".join(lines).strip()


def _previews(results: List[SearchResult]) -> List[Dict[str, object]]:
    return [
        {
            "title": r.title,
            "category": r.category,
            "relevance": r.relevance,
            "chunk_preview": chunk_preview(r.text),
        }
        for r in results
    ]


def answer_question(
    question: str,
    results: List[SearchResult],
    generate: Callable[[str, str], str],
) -> ChatAnswer:
    """Answer ``question`` from ``results``.

    ``generate(question, context_block)`` is the caller's LLM call. Any
    exception it raises is logged and the templated summary is returned
    instead.
    """
    if not results:
        return ChatAnswer(response=NOT_FOUND_MESSAGE, context="No relevant information found")

    context_block = build_context_block(results)
    try:
        response = generate(question, context_block)
    except Exception:
        logger.warning("Generation failed, falling back to keyword summary", exc_info=True)
        return ChatAnswer(
            response=build_fallback_answer(results),
            context=f"Found {len(results)} relevant chunks (generation unavailable, using keyword summary)",
            used_fallback=True,
            previews=_previews(results),
        )

    return ChatAnswer(
        response=response,
        context=f"Found {len(results)} relevant chunks from knowledge base",
        previews=_previews(results),
    )
