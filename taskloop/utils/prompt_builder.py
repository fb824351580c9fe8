"""
Prompt builder module - Constructs the prompt handed to a provider
"""

from typing import List

from taskloop.models import Task


class PromptBuilder:
    """
    Builds provider prompts for a task attempt.

    The prompt carries the task itself, everything learned on earlier
    passes, the failure output of the previous iteration (on retry), and the
    gate commands the result will be checked against.
    """

    @staticmethod
    def build_task_prompt(task: Task, gates: List[str], feedback: str = "") -> str:
        """
        Build the prompt for one iteration.

        Args:
            task: Task being worked on
            gates: Gate commands that will verify the result
            feedback: Gate-failure or provider-error summary from the prior
                iteration; empty on the first attempt

        Returns:
            Formatted prompt string
        """
        lines = [
            "You are working on the following task:",
            "",
            f"## Task: {task.title}",
            task.description,
        ]

        if task.learnings:
            lines += ["", "## Previous Learnings", task.learnings]

        if feedback:
            lines += ["", "## Gate Failures (previous attempt)", feedback]

        if gates:
            lines += [
                "",
                "## Instructions",
                "- Work in the current directory",
                "- Make the minimal changes needed",
                "- When done, the following gates will be checked:",
            ]
            lines += [f"  - {gate}" for gate in gates]

        return "\n".join(lines) + "\n"
