"""
Progress messages written by the loop engine.

The engine reports progress as plain text lines; the event translator
recognizes the same phrasings to build typed events. Both sides format and
match through these constants.
"""

LOG_PREFIX = "[taskloop]"

LOOP_STARTED = "Starting with default provider: {provider}"
# older transcripts omit "default"
LOOP_STARTED_SHORT = "Starting with provider: {provider}"
TASK_STARTED = "Task #{task_id}: started ({title})"
ITERATION_STARTED = "── Iteration {iteration}/{max_iterations} ── Task #{task_id}: {title}"
PROVIDER_INVOKED = "Invoking {provider}..."
PROVIDER_FINISHED = "Provider finished"
PROVIDER_ERROR = "Provider error: {error}"
GATE_PASSED_MARK = "✓"
GATE_FAILED_MARK = "✗"
GATE_RESULT = "Running gate: {command}  {mark}"
TASK_DONE = "Task #{task_id}: done"
TASK_FAILED_MAX_ITERATIONS = "Task #{task_id}: failed (max iterations reached)"
TASK_FAILED_UNKNOWN_PROVIDER = "Task #{task_id}: failed (unknown provider: {provider})"
SUMMARY_HEADER = "── Summary ──"
SUMMARY = "{done}/{total} tasks done, {failed} failed"

# Learnings recorded on tasks
LEARNING_UNKNOWN_PROVIDER = 'Unknown provider: "{provider}"'
LEARNING_PROVIDER_EXHAUSTED = "Failed after {iterations} iterations. Last error: {error}"
LEARNING_GATES_EXHAUSTED = "Failed after {iterations} iterations. Gates did not pass."
LEARNING_SKIPPED = "Skipped by user via dashboard"

# Feedback carried into the next iteration's prompt
FEEDBACK_PROVIDER_ERROR = "Provider error: {error}\nOutput: {output}"
