"""
Test suite for gate execution.
"""

import asyncio

import pytest

from taskloop.core.gates import GateResult, GateRunner, all_passed, gate_failure_summary
from taskloop.utils.exceptions import GateExecutionError


class TestGateRunner:
    """Run real shell gates."""

    def setup_method(self):
        self.runner = GateRunner()

    def test_results_in_order(self, tmp_path):
        results = asyncio.run(self.runner.run(["true", "false", "echo hello"], tmp_path))
        assert [r.command for r in results] == ["true", "false", "echo hello"]
        assert [r.passed for r in results] == [True, False, True]
        assert results[2].output.strip() == "hello"

    def test_captures_stderr(self, tmp_path):
        results = asyncio.run(self.runner.run(["echo oops 1>&2; exit 1"], tmp_path))
        assert not results[0].passed
        assert "oops" in results[0].output

    def test_runs_in_work_dir(self, tmp_path):
        (tmp_path / "marker.txt").write_text("x")
        results = asyncio.run(self.runner.run(["test -f marker.txt"], tmp_path))
        assert results[0].passed

    def test_no_gates_passes(self, tmp_path):
        results = asyncio.run(self.runner.run([], tmp_path))
        assert results == []
        assert all_passed(results)

    def test_timeout_is_a_failed_gate(self, tmp_path):
        runner = GateRunner(timeout_seconds=0.3)
        results = asyncio.run(runner.run(["sleep 30"], tmp_path))
        assert not results[0].passed
        assert "timed out" in results[0].output

    def test_missing_work_dir_raises(self, tmp_path):
        with pytest.raises(GateExecutionError):
            asyncio.run(self.runner.run(["true"], tmp_path / "nope"))


class TestGateFailureSummary:
    """Test the retry feedback built from gate results."""

    def test_summarizes_only_failures(self):
        results = [
            GateResult("make lint", True, "clean"),
            GateResult("make test", False, "2 failed"),
            GateResult("make types", False, "error: x"),
        ]
        assert gate_failure_summary(results) == (
            "FAIL: make test\n2 failed\n"
            "FAIL: make types\nerror: x\n"
        )

    def test_empty_when_all_pass(self):
        assert gate_failure_summary([GateResult("true", True)]) == ""
