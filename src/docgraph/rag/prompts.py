"""Prompt assembly for chat turns."""

from __future__ import annotations

from collections.abc import Sequence

from docgraph.rag.types import Source

SYSTEM_PROMPT = (
    "You are a helpful assistant. Use the supplied context to enrich and support "
    "your response, citing Source numbers in brackets (e.g., [Source 1]) when you "
    "draw from it. If the context is missing or not useful, rely on your general "
    "knowledge, note any uncertainty, and still deliver the best possible answer. "
    "Always answer the question first, then optionally add brief context notes."
)

_ANSWER_INSTRUCTIONS = (
    "Provide your answer in markdown. Begin with the direct answer. If you "
    "reference the context, cite the relevant Source numbers. Conclude with a "
    "short 'Context Notes' section only when you actually used the context."
)


def system_prompt() -> str:
    return SYSTEM_PROMPT


def build_context_prompt(sources: Sequence[Source]) -> str:
    """Render *sources* as numbered context blocks (1-based).

    Each block lists the source header, any insight lines that carry data,
    then the snippet followed by a blank line.
    """
    parts: list[str] = []
    for idx, source in enumerate(sources, start=1):
        insight = source.insight
        parts.append(f"Source {idx}: {source.title} ({source.path})\n")

        if insight.chunk_count > 0:
            parts.append(f"Chunks indexed: {insight.chunk_count}\n")

        sections = [f"{s.title} (level {s.level})" for s in insight.sections if s.title]
        if sections:
            parts.append("Sections: " + "; ".join(sections) + "\n")

        if insight.topics:
            parts.append("Topics: " + ", ".join(insight.topics) + "\n")
        if insight.folders:
            parts.append("Folders: " + ", ".join(insight.folders) + "\n")

        if insight.related_documents:
            parts.append("Related documents:\n")
            for related in insight.related_documents:
                weight = f" weight {related.weight:.2f}" if related.weight > 0 else ""
                reason = f" via {related.reason}" if related.reason else ""
                parts.append(f"- {related.title} ({related.path}){weight}{reason}\n")

        parts.append(source.snippet)
        parts.append("\n\n")
    return "".join(parts)


def format_user_prompt(question: str, context: str = "") -> str:
    """Combine *question* with the optional *context* block."""
    prompt = "Question:\n" + question
    if context.strip():
        prompt += "\nContext (optional, may be incomplete):\n" + context
    return prompt + "\n" + _ANSWER_INSTRUCTIONS
