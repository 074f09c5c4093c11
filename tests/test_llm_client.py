"""Tests for JSON recovery from model output."""

import pytest


class TestParseJsonResponse:
    def test_direct_json(self):
        from tools.llm_client import parse_json_response
        result = parse_json_response('{"episode_number": 5, "access_type": "free"}')
        assert result == {"episode_number": 5, "access_type": "free"}

    def test_markdown_code_fence_with_lang(self):
        from tools.llm_client import parse_json_response
        text = '```json\n{"key": "value"}\n```'
        assert parse_json_response(text) == {"key": "value"}

    def test_markdown_code_fence_without_lang(self):
        from tools.llm_client import parse_json_response
        text = '```\n{"key": "value"}\n```'
        assert parse_json_response(text) == {"key": "value"}

    def test_json_embedded_in_prose(self):
        from tools.llm_client import parse_json_response
        text = 'Here you go: {"episode_number": 8, "confidence": "high"} Let me know!'
        result = parse_json_response(text)
        assert result["episode_number"] == 8
        assert result["confidence"] == "high"

    def test_nested_object_uses_widest_span(self):
        from tools.llm_client import parse_json_response
        text = 'Result: {"a": {"b": 1}, "c": [1, 2]} end'
        assert parse_json_response(text) == {"a": {"b": 1}, "c": [1, 2]}

    def test_raw_newline_inside_string_accepted(self):
        from tools.llm_client import parse_json_response
        assert parse_json_response('{"note": "line one\nline two"}')["note"] == "line one\nline two"

    def test_invalid_raises_value_error(self):
        from tools.llm_client import parse_json_response
        with pytest.raises(ValueError, match="Failed to parse JSON"):
            parse_json_response("I could not understand that command.")

    def test_json_array_is_not_an_object(self):
        from tools.llm_client import parse_json_response
        with pytest.raises(ValueError):
            parse_json_response("[1, 2, 3]")


class TestExtractFirstObject:
    def test_first_of_two_objects(self):
        from tools.llm_client import extract_first_object
        text = '{"episode_number": 5} and also {"episode_number": 6}'
        assert extract_first_object(text) == {"episode_number": 5}

    def test_skips_non_json_braces(self):
        from tools.llm_client import extract_first_object
        text = 'use {placeholder} then {"access_type": "advance"}'
        assert extract_first_object(text) == {"access_type": "advance"}

    def test_nested_object_returned_whole(self):
        from tools.llm_client import extract_first_object
        text = 'Answer: {"episode_number": 5, "notes": {"source": "user"}} done'
        assert extract_first_object(text) == {"episode_number": 5, "notes": {"source": "user"}}

    def test_none_when_absent(self):
        from tools.llm_client import extract_first_object
        assert extract_first_object("no braces here") is None
