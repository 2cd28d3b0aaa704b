"""Unit tests for the string-aware repair primitives."""

import json

import pytest

from adaptive_generation.response.repair import (
    clip_to_braces,
    close_open_structures,
    cut_at_last_comma,
    lenient_strip,
    normalize_body,
    scan_structure,
    strip_code_fence,
)

pytestmark = pytest.mark.unit


class TestFences:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ('```json\n{"a": 1}\n```', '{"a": 1}'),
            ('```\n{"a": 1}\n```', '{"a": 1}'),
            ('Sure:\n```JSON\n{"a": 1}\n```\nDone.', '{"a": 1}'),
            ('```json\n{"a": 1', '{"a": 1'),
            ('  {"a": 1}  ', '{"a": 1}'),
            ("```\nhello\n```", "hello"),
        ],
    )
    def test_strip_code_fence(self, raw, expected):
        assert strip_code_fence(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [
            '{"a": "Open with ```\\ncode\\n``` on screen"}',
            '```json\n{"a": "Open with ```\\ncode\\n``` on screen"}\n```',
        ],
    )
    def test_backticks_inside_strings_survive_fence_stripping(self, raw):
        assert json.loads(strip_code_fence(raw)) == {"a": "Open with ```\ncode\n``` on screen"}

    def test_lenient_strip_only_touches_the_ends(self):
        raw = '```json\n{"a": "x ``` y"}\n```'

        assert lenient_strip(raw) == '{"a": "x ``` y"}'

    def test_lenient_strip_keeps_backticks_ending_a_cut_off_string(self):
        assert lenient_strip('{"a": "code ```') == '{"a": "code ```'
        assert lenient_strip('{"a": "code"}\n```') == '{"a": "code"}'


class TestClipToBraces:
    def test_clips_to_outer_braces(self):
        assert clip_to_braces('noise {"a": {"b": 2}} tail') == ('{"a": {"b": 2}}', True)

    def test_unclosed_runs_to_the_end(self):
        assert clip_to_braces('x {"a": [1, 2') == ('{"a": [1, 2', False)

    def test_no_object_clips_to_empty(self):
        assert clip_to_braces("no braces here") == ("", False)


class TestNormalizeBody:
    def test_drops_trailing_commas(self):
        text, state = normalize_body('{"a": [1, 2, ], "b": 3,\n}')

        assert json.loads(text) == {"a": [1, 2], "b": 3}
        assert state.balanced

    def test_escapes_raw_control_characters_inside_strings(self):
        text, _ = normalize_body('{"a": "line1\nline2\tend"}')

        assert json.loads(text) == {"a": "line1\nline2\tend"}

    def test_leaves_commas_inside_strings_alone(self):
        text, _ = normalize_body('{"a": "x,}"}')

        assert text == '{"a": "x,}"}'

    def test_resumes_from_a_previous_scan(self):
        head = '{"a": [1, 2], "b": "one\ntwo'
        tail = ' three", "c": [3,]'

        head_text, head_state = normalize_body(head)
        tail_text, tail_state = normalize_body(tail, head_state)

        assert (head_text + tail_text, tail_state) == normalize_body(head + tail)
        assert tail_state.stack == ("{",)

    def test_reports_open_structure(self):
        state = scan_structure('{"a": [{"b": "unterminated')

        assert state.stack == ("{", "[", "{")
        assert state.in_string is True
        assert not state.balanced


class TestCloseOpenStructures:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ('{"a": [1, 2,', {"a": [1, 2]}),
            ('{"a": "hel', {"a": "hel"}),
            ('{"a": "x\\', {"a": "x"}),
            ('{"a": 1, "b":', {"a": 1, "b": None}),
            ('{"scenes": [{"x": 1}, {"x":', {"scenes": [{"x": 1}, {"x": None}]}),
            ('{"a": 1}', {"a": 1}),
        ],
    )
    def test_closes_to_valid_json(self, raw, expected):
        assert json.loads(close_open_structures(raw)) == expected


class TestCutAtLastComma:
    def test_cuts_after_the_last_structural_comma(self):
        assert cut_at_last_comma('{"a": 1, "b": "x,y') == '{"a": 1'

    def test_returns_none_without_a_comma(self):
        assert cut_at_last_comma('{"a": "1,2"') is None

    def test_escaped_quotes_do_not_end_the_string(self):
        assert cut_at_last_comma('{"a": "say \\"hi, there\\"", "b": 2') == (
            '{"a": "say \\"hi, there\\""'
        )
