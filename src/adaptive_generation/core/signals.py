"""Helpers for describing source material before it is scored."""

from __future__ import annotations

from collections import Counter
import re

from .types import ContentSignal

_NON_WORD = re.compile(r"[^\w\s]", re.UNICODE)
_MIN_KEYWORD_LENGTH = 4


def extract_keywords(text: str, limit: int = 5) -> list[str]:
    """Return the most frequent words longer than three characters.

    Text is lowercased and stripped of punctuation first. Ties keep the order
    in which words first appeared, so the result is deterministic.
    """
    if not text or limit <= 0:
        return []
    words = [
        w
        for w in _NON_WORD.sub(" ", text.lower()).split()
        if len(w) >= _MIN_KEYWORD_LENGTH
    ]
    return [word for word, _ in Counter(words).most_common(limit)]


def signal_keywords(signal: ContentSignal, limit: int = 5) -> list[str]:
    """Keyword scan over a signal's title, description and transcript."""
    return extract_keywords(
        " ".join(part for part in (signal.title, signal.description, signal.transcript) if part),
        limit,
    )


def summarize_signal(signal: ContentSignal) -> str:
    """One-line description of a signal for log messages."""
    counts = (
        f"characters={signal.character_count} scenes={signal.scene_count} "
        f"dialogues={signal.dialogue_count}"
        if signal.has_analysis
        else "unanalysed"
    )
    return (
        f"title={signal.title[:40]!r} duration={signal.duration_seconds:g}s "
        f"transcript={signal.transcript_length} {counts}"
    )
