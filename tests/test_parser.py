"""Tests for JSON extraction from model output."""

from agentboard.ai.parser import extract_json_object, parse_json_object, string_list


class TestExtractJsonObject:
    """Tests for extract_json_object."""

    def test_plain_object(self):
        assert extract_json_object('{"a": 1}') == '{"a": 1}'

    def test_fenced_with_preamble(self):
        """Markdown fences and prose around the object are ignored."""
        text = 'Here is my analysis:\n```json\n{"insights": ["x"]}\n```\nThanks!'
        assert extract_json_object(text) == '{"insights": ["x"]}'

    def test_nested_objects(self):
        text = 'pre {"a": {"b": {"c": 1}}, "d": 2} post {"e": 3}'
        assert extract_json_object(text) == '{"a": {"b": {"c": 1}}, "d": 2}'

    def test_braces_inside_strings(self):
        """A closing brace in a string literal does not end the object."""
        text = '{"title": "Handle } in input", "ok": true}'
        assert extract_json_object(text) == text

    def test_escaped_quote_inside_string(self):
        text = '{"title": "Say \\"hi}\\" loudly"}'
        assert extract_json_object(text) == text

    def test_no_object(self):
        assert extract_json_object("no json here") is None

    def test_unclosed_object(self):
        assert extract_json_object('{"a": 1') is None


class TestParseJsonObject:
    """Tests for parse_json_object."""

    def test_decodes_first_object(self):
        assert parse_json_object('noise {"tasks": []} more') == {"tasks": []}

    def test_invalid_json_returns_none(self):
        """Balanced braces that are not JSON."""
        assert parse_json_object("{not: json}") is None

    def test_empty_text(self):
        assert parse_json_object("") is None


class TestStringList:
    """Tests for string_list."""

    def test_non_list(self):
        assert string_list("insight") == []
        assert string_list(None) == []

    def test_drops_empty_and_none(self):
        assert string_list(["a", "", None, "  ", " b "]) == ["a", "b"]

    def test_coerces_scalars(self):
        assert string_list([1, 2.5]) == ["1", "2.5"]


class TestTruncatedReplies:
    """Replies cut off before the outer object closes."""

    def test_inner_object_not_returned(self):
        text = '{"insights": ["a"], "tasks": [{"title": "First", "priority": "high"}, {"title": "Sec'
        assert extract_json_object(text) is None
        assert parse_json_object(text) is None
