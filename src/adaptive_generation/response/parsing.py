"""Response parsing through an ordered repair ladder.

Tiers run strictest first and each runs only if the previous one failed:

1. strict: parse as is, else strip a surrounding code fence and clip to the
   outer braces, parse
2. markdown strip: drop fence markers anchored at either end only, parse
3. intelligent repair: fix trailing commas and raw control characters,
   close what truncation left open, parse
4. partial extraction: scrape the narrative field, synthesize the rest
5. fallback: fixed-shape object around the raw text; cannot fail

`ResponseParser.parse` never raises. Every tier attempt is recorded in
``repair_notes`` and ``strategy_used`` names the tier that produced ``data``.
"""

from __future__ import annotations

from collections.abc import Callable
import json
import logging
import typing

from adaptive_generation import constants as c
from adaptive_generation.core.types import ParseOutcome, ParseStrategy

from .extraction import build_fallback, extract_partial
from .repair import (
    clip_to_braces,
    close_open_structures,
    cut_at_last_comma,
    lenient_strip,
    normalize_body,
    strip_code_fence,
)

log = logging.getLogger(__name__)

type Payload = dict[str, typing.Any]
# Per-call scan results shared between tiers
type _ScanMemo = dict[str, bool]
type _Tier = Callable[[str, _ScanMemo], tuple[Payload, bool]]

_DECODER = json.JSONDecoder()


class _TierMiss(Exception):
    """A tier found nothing usable; carries the note to record."""


def _loads_object(text: str) -> Payload:
    data = json.loads(text)
    if not isinstance(data, dict):
        raise _TierMiss(f"parsed a {type(data).__name__}, expected an object")
    return data


def _coerce_text(raw: object) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes | bytearray):
        return bytes(raw).decode("utf-8", errors="replace")
    if isinstance(raw, str):
        return raw
    return str(raw)


class ResponseParser:
    """Runs raw model text through the repair ladder.

    Args:
        max_response_chars: Input longer than this is clipped before any tier
            runs, which keeps every tier's cost bounded.
    """

    def __init__(self, max_response_chars: int = c.DEFAULT_MAX_RESPONSE_CHARS) -> None:
        self.max_response_chars = max_response_chars
        self._tiers: tuple[tuple[ParseStrategy, _Tier], ...] = (
            (ParseStrategy.STRICT, self._strict),
            (ParseStrategy.MARKDOWN_STRIP, self._markdown_strip),
            (ParseStrategy.INTELLIGENT_REPAIR, self._intelligent_repair),
            (ParseStrategy.PARTIAL_EXTRACTION, self._partial_extraction),
        )

    def parse(self, raw: object) -> ParseOutcome:
        text = _coerce_text(raw)
        notes: list[str] = []
        scan: _ScanMemo = {}
        clipped_input = len(text) > self.max_response_chars
        if clipped_input:
            notes.append(
                f"input clipped from {len(text)} to {self.max_response_chars} chars"
            )
            text = text[: self.max_response_chars]

        for strategy, tier in self._tiers:
            try:
                data, truncated = tier(text, scan)
            except _TierMiss as e:
                notes.append(f"{strategy.value}: {e}")
                continue
            except (ValueError, RecursionError) as e:
                notes.append(f"{strategy.value}: {type(e).__name__}: {e}")
                continue
            except Exception as e:
                # No tier may take the ladder down with it.
                log.debug("Tier %s raised unexpectedly", strategy.value, exc_info=True)
                notes.append(f"{strategy.value}: unexpected {type(e).__name__}: {e}")
                continue

            notes.append(f"{strategy.value}: ok")
            truncated = truncated or clipped_input
            confidence = self._confidence(strategy, truncated=truncated)
            log.debug("Parsed response via %s (confidence %.2f)", strategy.value, confidence)
            return ParseOutcome(
                success=True,
                data=data,
                strategy_used=strategy,
                repair_notes=tuple(notes),
                confidence=confidence,
                truncated=truncated,
            )

        notes.append(f"{ParseStrategy.FALLBACK.value}: ok")
        log.warning("All parse tiers failed; using fallback payload (%d chars)", len(text))
        return ParseOutcome(
            success=False,
            data=build_fallback(text),
            strategy_used=ParseStrategy.FALLBACK,
            repair_notes=tuple(notes),
            confidence=c.STRATEGY_CONFIDENCE["fallback"],
            truncated=clipped_input or self._looks_truncated(text, scan),
        )

    # --- tiers ---

    def _strict(self, text: str, scan: _ScanMemo) -> tuple[Payload, bool]:
        stripped = text.strip()
        try:
            return _loads_object(stripped), False
        except (ValueError, _TierMiss):
            pass
        clipped, closed = clip_to_braces(strip_code_fence(stripped))
        if not clipped:
            raise _TierMiss("no object found")
        if not closed:
            raise _TierMiss("object never closed")
        return _loads_object(clipped), False

    def _markdown_strip(self, text: str, scan: _ScanMemo) -> tuple[Payload, bool]:
        stripped = lenient_strip(text)
        if not stripped:
            raise _TierMiss("empty after stripping")
        return _loads_object(stripped), False

    def _intelligent_repair(self, text: str, scan: _ScanMemo) -> tuple[Payload, bool]:
        stripped = lenient_strip(text)
        clipped, closed = clip_to_braces(stripped)
        if not clipped:
            scan["truncated"] = False
            raise _TierMiss("no object found")
        normalized, state = normalize_body(clipped)
        scan["truncated"] = not closed or not state.balanced
        tail_start = stripped.find("{") + len(clipped)
        lost_tail = len(stripped) - tail_start
        truncated = scan["truncated"] or lost_tail > c.TRUNCATION_SLACK_CHARS
        if not truncated:
            try:
                return _loads_object(normalized), False
            except ValueError:
                # Trailing prose with braces of its own: keep the first object.
                data, _ = _DECODER.raw_decode(normalized)
                if not isinstance(data, dict):
                    raise _TierMiss("leading value is not an object") from None
                return data, False

        candidates: list[str] = []
        if closed and lost_tail > c.TRUNCATION_SLACK_CHARS:
            # The tail after the last brace may still hold data.
            tail_body, tail_state = normalize_body(stripped[tail_start:], state)
            candidates.append(close_open_structures(normalized + tail_body, tail_state))
        candidates.append(close_open_structures(normalized, state))
        shortened = cut_at_last_comma(normalized)
        if shortened is not None:
            candidates.append(close_open_structures(shortened))

        last_error: Exception | None = None
        for candidate in candidates:
            try:
                return _loads_object(candidate), True
            except (ValueError, _TierMiss) as e:
                last_error = e
        raise _TierMiss(f"closing open structures did not help ({last_error})")

    def _partial_extraction(self, text: str, scan: _ScanMemo) -> tuple[Payload, bool]:
        data = extract_partial(text)
        if data is None:
            raise _TierMiss(
                f"no narrative field of at least {c.MIN_NARRATIVE_LENGTH} chars"
            )
        return data, self._looks_truncated(text, scan)

    # --- helpers ---

    def _confidence(self, strategy: ParseStrategy, *, truncated: bool) -> float:
        if strategy is ParseStrategy.INTELLIGENT_REPAIR and truncated:
            return c.STRATEGY_CONFIDENCE["intelligent_repair_truncated"]
        return c.STRATEGY_CONFIDENCE[strategy.value]

    def _looks_truncated(self, text: str, scan: _ScanMemo) -> bool:
        if "truncated" in scan:
            return scan["truncated"]
        clipped, closed = clip_to_braces(lenient_strip(text))
        if not clipped:
            return False
        return not closed or not normalize_body(clipped)[1].balanced


_DEFAULT_PARSER = ResponseParser()


def parse(raw: object) -> ParseOutcome:
    """Parse with a default `ResponseParser`."""
    return _DEFAULT_PARSER.parse(raw)
