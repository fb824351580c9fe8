"""
Test suite for provider prompt construction.
"""

from taskloop.models import Task
from taskloop.utils.prompt_builder import PromptBuilder


class TestPromptBuilder:
    """Test PromptBuilder.build_task_prompt."""

    def setup_method(self):
        self.task = Task(id="1", title="Add login", description="Implement POST /login")

    def test_first_attempt_prompt(self):
        prompt = PromptBuilder.build_task_prompt(self.task, [])
        assert prompt == (
            "You are working on the following task:\n"
            "\n"
            "## Task: Add login\n"
            "Implement POST /login\n"
        )

    def test_includes_learnings(self):
        self.task.learnings = "Failed after 3 iterations. Gates did not pass."
        prompt = PromptBuilder.build_task_prompt(self.task, [])
        assert "## Previous Learnings\nFailed after 3 iterations. Gates did not pass." in prompt

    def test_includes_feedback_on_retry(self):
        prompt = PromptBuilder.build_task_prompt(self.task, [], "FAIL: make test\n1 failed\n")
        assert "## Gate Failures (previous attempt)\nFAIL: make test\n1 failed" in prompt

    def test_lists_gates_in_instructions(self):
        prompt = PromptBuilder.build_task_prompt(self.task, ["make test", "make lint"])
        assert "## Instructions" in prompt
        assert "- When done, the following gates will be checked:\n  - make test\n  - make lint\n" in prompt

    def test_no_optional_sections_when_empty(self):
        prompt = PromptBuilder.build_task_prompt(self.task, [], "")
        assert "Previous Learnings" not in prompt
        assert "Gate Failures" not in prompt
        assert "Instructions" not in prompt
