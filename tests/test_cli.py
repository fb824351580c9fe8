"""
Test suite for the taskloop command line.
"""

import json

import pytest

from conftest import pending, write_config
from taskloop.cli import main
from taskloop.config import ConfigProperties
from taskloop.models import Task, TaskStatus


_ENV_KEYS = (
    "TASKLOOP_HOST", "TASKLOOP_PORT", "TASKLOOP_CONFIG", "TASKLOOP_WORK_DIR",
    "TASKLOOP_PROVIDER_TIMEOUT", "TASKLOOP_GATE_TIMEOUT", "TASKLOOP_STOP_TIMEOUT",
)


class TestCli:
    """Run CLI commands inside an empty project directory."""

    @pytest.fixture(autouse=True)
    def _project(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        for key in _ENV_KEYS:
            monkeypatch.delenv(key, raising=False)
        ConfigProperties.reload()
        self.dir = tmp_path
        self.path = tmp_path / "taskloop.json"
        yield
        ConfigProperties.reload()

    def test_init_creates_template(self, capsys):
        assert main(["init"]) == 0
        data = json.loads(self.path.read_text(encoding="utf-8"))
        assert data["name"] == self.dir.name
        assert data["provider"] == "claude"
        assert data["tasks"][0]["status"] == "pending"
        assert "Created" in capsys.readouterr().out

    def test_init_refuses_to_overwrite(self, capsys):
        self.path.write_text("{}", encoding="utf-8")
        assert main(["init"]) == 1
        assert "Error:" in capsys.readouterr().err
        assert self.path.read_text(encoding="utf-8") == "{}"

    def test_status(self, capsys):
        write_config(self.path, [
            Task(id="1", title="Setup", status=TaskStatus.DONE),
            pending("2", "Build"),
        ], gates=["make test", "make lint"])
        assert main(["status"]) == 0
        out = capsys.readouterr().out
        assert "Project: test-project" in out
        assert "Gates: make test, make lint" in out
        assert "[✓] #1 Setup (done)" in out
        assert "[ ] #2 Build (pending)" in out

    def test_status_without_config_fails(self, capsys):
        assert main(["status"]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_status_with_explicit_config(self, capsys, tmp_path):
        other = tmp_path / "elsewhere.json"
        write_config(other, [pending("7", "Remote")])
        assert main(["status", "--config", str(other)]) == 0
        assert "#7 Remote" in capsys.readouterr().out

    def test_providers(self, capsys):
        assert main(["providers"]) == 0
        assert capsys.readouterr().out.splitlines() == ["  - claude", "  - kimi", "  - opencode"]

    def test_models_marks_configured_provider(self, capsys):
        write_config(self.path, provider="kimi")
        assert main(["models"]) == 0
        out = capsys.readouterr().out
        assert "  * kimi (configured)" in out
        assert "  - claude" in out

    def test_models_without_config(self, capsys):
        assert main(["models"]) == 0
        assert "(configured)" not in capsys.readouterr().out

    def test_run_with_unknown_provider_fails_task(self, capsys):
        write_config(self.path, [pending("1", "Build")])
        assert main(["run", "--provider", "nosuch", "--max-iterations", "5"]) == 0

        config = json.loads(self.path.read_text(encoding="utf-8"))
        assert config["maxIterations"] == 5
        task = config["tasks"][0]
        assert task["status"] == "failed"
        assert task["learnings"] == 'Unknown provider: "nosuch"'

        out = capsys.readouterr().out
        assert "[taskloop] Starting with default provider: nosuch" in out
        assert "[taskloop] 0/1 tasks done, 1 failed" in out

    def test_run_without_pending_tasks(self, capsys):
        write_config(self.path, [Task(id="1", title="t", status=TaskStatus.DONE)])
        assert main(["run"]) == 0
        assert "1/1 tasks done, 0 failed" in capsys.readouterr().out

    def test_serve_without_config(self, capsys):
        assert main(["serve"]) == 1
        assert "Run 'taskloop init' first." in capsys.readouterr().err
