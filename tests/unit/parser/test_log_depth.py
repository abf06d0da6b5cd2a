"""Tests for stack height reconstruction from program logs."""

from pdatrace.parser.utils.log_depth import inner_depths_from_logs


class TestInnerDepthsFromLogs:
    def test_groups_by_top_level_instruction(self):
        logs = [
            "Program ComputeBudget111111111111111111111111111111 invoke [1]",
            "Program ComputeBudget111111111111111111111111111111 success",
            "Program 53DfF883gyixYNXnM7s5xhdeyV8mVk9T4i2hGV9vG9io invoke [1]",
            "Program 11111111111111111111111111111111 invoke [2]",
            "Program 11111111111111111111111111111111 success",
            "Program TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA invoke [2]",
            "Program TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA invoke [3]",
            "Program TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA success",
            "Program TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA success",
            "Program 53DfF883gyixYNXnM7s5xhdeyV8mVk9T4i2hGV9vG9io success",
        ]
        assert inner_depths_from_logs(logs) == {1: [2, 2, 3]}

    def test_failed_line_closes_frame(self):
        logs = [
            "Program AAA invoke [1]",
            "Program BBB invoke [2]",
            "Program BBB failed: custom program error: 0x1",
            "Program CCC invoke [2]",
            "Program CCC success",
            "Program AAA success",
        ]
        assert inner_depths_from_logs(logs) == {0: [2, 2]}

    def test_program_log_lines_are_not_completions(self):
        logs = [
            "Program AAA invoke [1]",
            "Program BBB invoke [2]",
            "Program log: success",
            "Program CCC invoke [3]",
            "Program CCC success",
            "Program BBB success",
            "Program AAA success",
        ]
        assert inner_depths_from_logs(logs) == {0: [2, 3]}

    def test_declared_height_resyncs_counter(self):
        # A missing completion line would leave the counter one too high
        logs = [
            "Program AAA invoke [1]",
            "Program BBB invoke [2]",
            "Program CCC invoke [2]",
            "Program CCC success",
            "Program AAA success",
        ]
        assert inner_depths_from_logs(logs) == {0: [2, 2]}

    def test_stops_at_truncation(self):
        logs = [
            "Program AAA invoke [1]",
            "Program BBB invoke [2]",
            "Log truncated",
            "Program CCC invoke [2]",
        ]
        assert inner_depths_from_logs(logs) == {0: [2]}

    def test_empty_or_missing_logs(self):
        assert inner_depths_from_logs([]) == {}
        assert inner_depths_from_logs(None) == {}
