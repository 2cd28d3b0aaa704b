"""Last-resort recovery: bounded field scraping and the fallback object.

Both run only after structural repair has failed. Scraping is best-effort:
the scan is capped in length and every pattern has a bounded repetition, so
adversarial input cannot make it run away.
"""

from __future__ import annotations

import json
import logging
import re
import typing

from adaptive_generation import constants as c

from .schema import DEFAULT_SCENARIO, scene_template

log = logging.getLogger(__name__)

_STRING_VALUE = r'"((?:[^"\\]|\\.){0,%d})' % c.PARTIAL_FIELD_MAX_CHARS
_NARRATIVE_PATTERNS = tuple(
    re.compile(r'"%s"\s*:\s*%s' % (re.escape(name), _STRING_VALUE), re.DOTALL)
    for name in c.NARRATIVE_FIELD_ALIASES
)
_SHORT_FIELD_PATTERNS = {
    name: re.compile(r'"%s"\s*:\s*"((?:[^"\\]|\\.){0,200})"' % name)
    for name in ("genre", "mood", "music")
}


def _decode_string(raw: str) -> str:
    """Decode JSON escapes in a scraped string body, tolerating damage."""
    try:
        return json.loads(f'"{raw}"', strict=False)
    except ValueError:
        # A cut-off escape sequence at the end is the usual culprit.
        return raw.replace('\\"', '"').replace("\\n", "\n").rstrip("\\")


def extract_partial(text: str) -> dict[str, typing.Any] | None:
    """Scrape the narrative field out of a broken document.

    Returns a minimal storyboard around the narrative, or ``None`` when no
    narrative of usable length is found.
    """
    window = text[: c.PARTIAL_SCAN_LIMIT]
    narrative = None
    for pattern in _NARRATIVE_PATTERNS:
        match = pattern.search(window)
        if match is None:
            continue
        candidate = _decode_string(match.group(1)).strip()
        if len(candidate) >= c.MIN_NARRATIVE_LENGTH:
            narrative = candidate
            break
        log.debug("Narrative candidate too short (%d chars)", len(candidate))
    if narrative is None:
        return None

    data: dict[str, typing.Any] = {"scenario": narrative}
    for name, pattern in _SHORT_FIELD_PATTERNS.items():
        match = pattern.search(window)
        if match is not None:
            value = _decode_string(match.group(1)).strip()
            if value:
                data[name] = value
    data["scenes"] = [scene_template(0)]
    return data


def build_fallback(text: str) -> dict[str, typing.Any]:
    """Fixed-shape payload carrying the raw text as its narrative."""
    narrative = text.strip()[: c.FALLBACK_NARRATIVE_MAX_CHARS] or DEFAULT_SCENARIO
    return {
        "scenario": narrative,
        "scenes": [scene_template(0)],
        "confidence": c.STRATEGY_CONFIDENCE["fallback"],
    }
