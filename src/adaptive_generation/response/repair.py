"""String-aware repair primitives for JSON-shaped model output.

Every helper is a single forward pass over the text, so repair cost stays
linear even on multi-megabyte responses. Runs of characters that cannot
change the scan state are consumed with one regex match instead of one loop
iteration each. None of the helpers attempt general JSON5/JSONC recovery;
they fix the handful of defects produced by truncated or carelessly
formatted model output.
"""

from __future__ import annotations

import dataclasses
import re

_FENCE = "```"
_FENCE_LINE_REST = re.compile(r"[\w-]*[ \t]*\r?\n?")
_STRING_RUN = re.compile(r'[^"\\\n\r\t]+')
_PLAIN_RUN = re.compile(r'[^"{}\[\],]+')
_COMMA_SCAN_RUN = re.compile(r'[^",]+')
_WHITESPACE = re.compile(r"[ \t\r\n]*")
_OPENERS = {"{": "}", "[": "]"}
_CLOSERS = {"}": "{", "]": "["}
_STRING_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


@dataclasses.dataclass(frozen=True, slots=True)
class ScanState:
    """Structure left open at the end of a scan."""

    stack: tuple[str, ...] = ()
    in_string: bool = False
    dangling_escape: bool = False

    @property
    def balanced(self) -> bool:
        return not self.stack and not self.in_string


def strip_code_fence(text: str) -> str:
    """Remove a markdown code fence wrapped around the object in ``text``.

    Only fence markers outside the object are touched: an opening fence
    before the first ``{`` (with its language tag) and a closing fence after
    the last ``}``. Everything before the opening fence and after the closing
    one goes with them. Backticks inside string values are never removed. An
    opening fence without a closing one (a truncated response) yields
    everything after the opening line.
    """
    stripped = text.strip()
    if _FENCE not in stripped:
        return stripped

    body = stripped
    first_brace = body.find("{")
    head = body if first_brace == -1 else body[:first_brace]
    opening = head.find(_FENCE)
    if opening != -1:
        rest = opening + len(_FENCE)
        body = body[_FENCE_LINE_REST.match(body, rest).end() :]

    last_brace = body.rfind("}")
    if last_brace != -1 or "{" not in body:
        closing = body.find(_FENCE, last_brace + 1)
        if closing != -1:
            body = body[:closing]

    body = body.strip()
    return body or stripped


def lenient_strip(text: str) -> str:
    """Remove fence markers anchored at the very start or end of ``text``.

    A closing marker is removed only when it sits on a line of its own or
    the text opened with a fence, so backticks ending a string value stay.
    """
    stripped = text.strip()
    opened = stripped.startswith(_FENCE)
    if opened:
        stripped = stripped[
            _FENCE_LINE_REST.match(stripped, len(_FENCE)).end() :
        ].lstrip()
    if stripped.endswith(_FENCE):
        before = stripped[: -len(_FENCE)]
        if opened or not before.strip() or before.rstrip(" \t").endswith("\n"):
            stripped = before.rstrip()
    return stripped


def clip_to_braces(text: str) -> tuple[str, bool]:
    """Clip to the span from the first ``{`` to the last ``}``.

    Returns the clipped text and whether a closing brace was found. Without
    one the text runs from the first ``{`` to the end. Text with no ``{`` at
    all clips to an empty string.
    """
    start = text.find("{")
    if start == -1:
        return "", False
    end = text.rfind("}")
    if end < start:
        return text[start:], False
    return text[start : end + 1], True


def normalize_body(text: str, state: ScanState | None = None) -> tuple[str, ScanState]:
    """Drop trailing commas and escape raw control characters inside strings.

    Returns the normalized text with the structure left open at its end.
    Passing the state returned for a preceding chunk continues that scan, so
    ``normalize_body(a + b)`` equals normalizing ``b`` from the state of ``a``
    whenever ``a`` does not end between a comma and its closer.
    """
    out: list[str] = []
    if state is None:
        state = ScanState()
    stack = list(state.stack)
    in_string = state.in_string
    escaped = state.dangling_escape
    i = 0
    n = len(text)
    while i < n:
        if in_string:
            if escaped:
                escaped = False
                out.append(text[i])
                i += 1
                continue
            run = _STRING_RUN.match(text, i)
            if run is not None:
                out.append(run.group())
                i = run.end()
                continue
            ch = text[i]
            if ch == "\\":
                escaped = True
                out.append(ch)
            elif ch == '"':
                in_string = False
                out.append(ch)
            else:
                out.append(_STRING_ESCAPES[ch])
            i += 1
            continue

        run = _PLAIN_RUN.match(text, i)
        if run is not None:
            out.append(run.group())
            i = run.end()
            continue
        ch = text[i]
        if ch == '"':
            in_string = True
        elif ch in _OPENERS:
            stack.append(ch)
        elif ch in _CLOSERS:
            if stack and stack[-1] == _CLOSERS[ch]:
                stack.pop()
        elif ch == ",":
            j = _WHITESPACE.match(text, i + 1).end()
            if j < n and text[j] in _CLOSERS:
                # Trailing comma: keep the whitespace, drop the comma.
                i += 1
                continue
        out.append(ch)
        i += 1
    return "".join(out), ScanState(tuple(stack), in_string, escaped)


def scan_structure(text: str) -> ScanState:
    """Structure left open at the end of ``text``."""
    return normalize_body(text)[1]


def close_open_structures(text: str, state: ScanState | None = None) -> str:
    """Close an unterminated string and every open object or array.

    A dangling tail that cannot be closed validly is trimmed first: a trailing
    comma is removed and a key left waiting for its value gets ``null``.
    """
    if state is None:
        state = scan_structure(text)
    if state.in_string:
        if state.dangling_escape:
            text = text[:-1]
        text += '"'
    text = text.rstrip()
    while text.endswith(","):
        text = text[:-1].rstrip()
    if text.endswith(":"):
        text += "null"
    closers = "".join(_OPENERS[opener] for opener in reversed(state.stack))
    return text + closers


def cut_at_last_comma(text: str) -> str | None:
    """Drop everything after the last comma that sits outside a string.

    Used when the element being written at the cut-off point is too broken
    to close in place. Returns ``None`` when there is no such comma.
    """
    last = -1
    i = 0
    n = len(text)
    while i < n:
        run = _COMMA_SCAN_RUN.match(text, i)
        if run is not None:
            i = run.end()
            continue
        if text[i] == ",":
            last = i
            i += 1
            continue
        # Opening quote: jump past the string, honouring escapes.
        i += 1
        while i < n:
            run = _STRING_RUN.match(text, i)
            if run is not None:
                i = run.end()
                continue
            ch = text[i]
            i += 2 if ch == "\\" else 1
            if ch == '"':
                break
    if last == -1:
        return None
    return text[:last]
