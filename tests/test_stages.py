"""Tests for the individual repair stages."""

import json

import pytest

from jsonmend.stages import (
    PIPELINE,
    STAGE_NAMES,
    balance_brackets,
    collapse_commas,
    escape_strings,
    fix_multiline_strings,
    fix_truncation,
    get_stage,
    insert_commas,
    quote_property_names,
    run_pipeline,
    strip_trailing_commas,
)
from jsonmend.types import RepairLog
from tests.conftest import VALID_DOCUMENTS


class TestEscapeStrings:
    """Test escaping inside string literals."""

    def test_raw_newline(self, log):
        assert escape_strings('{"a": "line1\nline2"}', log) == '{"a": "line1\\nline2"}'
        assert "1 raw newline" in log.entries[0]

    def test_tab(self, log):
        assert escape_strings('{"a": "x\ty"}', log) == '{"a": "x\\ty"}'
        assert "1 control character" in log.entries[0]

    def test_lone_backslash(self, log):
        assert escape_strings(r'{"p": "a\qb"}', log) == r'{"p": "a\\qb"}'
        assert "1 lone backslash" in log.entries[0]

    def test_internal_quotes(self, log):
        fixed = escape_strings('{"q": "He said "hi" loudly"}', log)
        assert json.loads(fixed) == {"q": 'He said "hi" loudly'}
        assert "2 unescaped quotes" in log.entries[0]

    def test_one_entry_for_all_fixes(self, log):
        escape_strings('{"a": "x\ny", "b": "p\\q"}', log)
        assert len(log) == 1

    def test_valid_escapes_kept(self, log):
        text = '{"a": "\\u00e9 \\/ \\b \\f \\n \\r \\t \\" \\\\"}'
        assert escape_strings(text, log) == text
        assert len(log) == 0


class TestInsertCommas:
    """Test missing separator insertion."""

    def test_number_then_key_same_line(self, log):
        assert insert_commas('{"a": 1 "b": 2}', log) == '{"a": 1, "b": 2}'
        assert log.entries == ["Inserted 1 missing comma between adjacent values"]

    def test_strings_across_lines(self, log):
        assert insert_commas('[\n  "x"\n  "y"\n]', log) == '[\n  "x",\n  "y"\n]'

    def test_objects_across_lines(self, log):
        assert insert_commas('[{"a": 1}\n{"b": 2}]', log) == '[{"a": 1},\n  {"b": 2}]'

    def test_array_then_property(self, log):
        assert insert_commas('{"a": [1]\n"b": 2}', log) == '{"a": [1],\n  "b": 2}'

    def test_boolean_then_property(self, log):
        assert insert_commas('{"a": true\n  "b": false}', log) == '{"a": true,\n  "b": false}'

    def test_key_not_followed_by_comma(self, log):
        assert insert_commas('{"a": {"b": 1}}', log) == '{"a": {"b": 1}}'
        assert len(log) == 0


class TestCollapseCommas:

    def test_double_comma(self, log):
        assert collapse_commas("[1,, 2]", log) == "[1, 2]"
        assert log.entries == ["Collapsed 1 duplicate comma run"]

    def test_spaced_commas(self, log):
        assert collapse_commas('{"a": 1, , ,"b": 2}', log) == '{"a": 1,"b": 2}'

    def test_commas_in_strings_untouched(self, log):
        assert collapse_commas('{"a": ",,"}', log) == '{"a": ",,"}'
        assert len(log) == 0


class TestBalanceBrackets:

    def test_appends_closers_innermost_first(self, log):
        assert balance_brackets('{"a": [1, 2', log) == '{"a": [1, 2]}'
        assert log.entries == ["Appended missing closing 1 brace and 1 bracket"]

    def test_defers_when_string_open(self, log):
        assert balance_brackets('{"a": "abc', log) == '{"a": "abc'
        assert len(log) == 0

    def test_brackets_in_strings_ignored(self, log):
        assert balance_brackets('{"a": "{["}', log) == '{"a": "{["}'


class TestStripTrailingCommas:

    def test_array(self, log):
        assert strip_trailing_commas('{"a": [1, 2,]}', log) == '{"a": [1, 2]}'
        assert log.entries == ["Removed 1 trailing comma"]

    def test_object_with_newline(self, log):
        assert strip_trailing_commas('{"a": 1,\n}', log) == '{"a": 1\n}'

    def test_comma_in_string(self, log):
        assert strip_trailing_commas('{"a": ",}"}', log) == '{"a": ",}"}'


class TestFixTruncation:
    """Test recovery of cut-off output."""

    def test_unterminated_property_value(self, log):
        assert fix_truncation('{"a": "unterminated', log) == '{"a": "unterminated"}'
        assert "closed unterminated property value" in log.entries[0]

    def test_unterminated_array_string(self, log):
        assert fix_truncation('["a", "b', log) == '["a", "b"]'
        assert "closed unterminated string" in log.entries[0]

    def test_ellipsis(self, log):
        text = '{"summary": "The results show improvement... and then the'
        fixed = fix_truncation(text, log)
        assert json.loads(fixed) == {"summary": "The results show improvement..."}
        assert "cut string after trailing ellipsis" in log.entries[0]

    def test_dangling_key(self, log):
        assert fix_truncation('{"a": 1, "b', log) == '{"a": 1}'
        assert "dropped incomplete trailing member" in log.entries[0]

    def test_dangling_key_and_colon(self, log):
        assert fix_truncation('{"a": 1, "b":}', log) == '{"a": 1}'

    def test_trailing_backslash(self, log):
        assert fix_truncation('{"a": "abc\\', log) == '{"a": "abc"}'

    def test_nested_structures(self, log):
        fixed = fix_truncation('{"items": [{"id": 1}, {"id": 2, "name": "Wid', log)
        assert json.loads(fixed) == {"items": [{"id": 1}, {"id": 2, "name": "Wid"}]}
        assert len(log) == 1


class TestMultilineStrings:

    def test_newline(self, log):
        assert fix_multiline_strings('{"a": "x\ny"}', log) == '{"a": "x\\ny"}'
        assert log.entries == ["Escaped 1 raw newline in multiline strings"]

    def test_crlf(self, log):
        assert fix_multiline_strings('{"a": "x\r\ny"}', log) == '{"a": "x\\ny"}'

    def test_newlines_outside_strings(self, log):
        assert fix_multiline_strings('{\n  "a": 1\n}', log) == '{\n  "a": 1\n}'
        assert len(log) == 0


class TestQuotePropertyNames:

    def test_bare_keys(self, log):
        assert quote_property_names('{name: "x", age: 3}', log) == '{"name": "x", "age": 3}'
        assert log.entries == ["Quoted 2 bare property names"]

    def test_nested(self, log):
        assert quote_property_names("{outer: {inner: 1}}", log) == '{"outer": {"inner": 1}}'

    def test_not_in_arrays(self, log):
        assert quote_property_names("[a: 1]", log) == "[a: 1]"

    def test_not_inside_strings(self, log):
        assert quote_property_names('{"text": "note: yes"}', log) == '{"text": "note: yes"}'

    def test_not_at_top_level(self, log):
        assert quote_property_names("key: 1", log) == "key: 1"
        assert len(log) == 0


class TestPipeline:
    """Test the ordered stage list."""

    def test_order(self):
        assert STAGE_NAMES == (
            "escape_strings",
            "insert_commas",
            "collapse_commas",
            "balance_brackets",
            "strip_trailing_commas",
            "fix_truncation",
            "fix_multiline_strings",
            "quote_property_names",
        )

    def test_get_stage(self):
        assert get_stage("insert_commas").name == "insert_commas"
        with pytest.raises(KeyError):
            get_stage("nope")

    def test_skip(self, log):
        assert run_pipeline("{a: 1}", log, skip=["quote_property_names"]) == "{a: 1}"
        assert run_pipeline("{a: 1}", RepairLog()) == '{"a": 1}'

    def test_log_is_append_only(self):
        log = RepairLog(["earlier entry"])
        run_pipeline('{"a": [1, 2,', log)
        assert log.entries[0] == "earlier entry"
        assert len(log) > 1

    @pytest.mark.parametrize("stage", PIPELINE, ids=STAGE_NAMES)
    @pytest.mark.parametrize("document", VALID_DOCUMENTS)
    def test_stage_is_noop_on_valid_json(self, stage, document, log):
        assert stage(document, log) == document
        assert len(log) == 0
