"""Tests for the last-resort repair pass."""

from jsonmend.aggressive import aggressive_repair
from jsonmend.diagnostics import is_valid_structure


class TestAggressiveRepair:

    def test_drops_member_after_last_comma(self, log):
        fixed = aggressive_repair('{"a": 1, "b": {"c": 2}, "d"', log)
        assert fixed == '{"a": 1, "b": {"c": 2}}'
        assert log.entries == [
            "Dropped incomplete content after the last comma",
            "Appended 1 closing brace(s) in aggressive repair",
        ]

    def test_keeps_complete_member_after_last_comma(self, log):
        assert aggressive_repair('"a": 1, "b": 2', log) == '{"a": 1, "b": 2}'
        assert "Dropped incomplete content after the last comma" not in log.entries

    def test_adds_missing_wrapper(self, log):
        assert aggressive_repair('"a": 1', log) == '{"a": 1}'
        assert log.entries == ["Prepended opening brace", "Appended closing brace"]

    def test_leaves_balanced_object_alone(self, log):
        assert aggressive_repair('{"a": 1}', log) == '{"a": 1}'
        assert len(log) == 0

    def test_square_brackets_not_rebalanced(self, log):
        # Only braces are rebalanced in this pass
        fixed = aggressive_repair('{"a": [1', log)
        assert fixed == '{"a": [1}'
        assert fixed.count("]") == 0
        assert not is_valid_structure(fixed)
