"""
Exception hierarchy for taskloop

Error categories:
- Persistence errors: the loop config file cannot be read or written
- Validation errors: malformed request input, unknown ids
- Conflict errors: an operation clashes with the current run or task state
- Provider errors: a provider invocation failed (recoverable within the
  iteration budget)
- Gate execution errors: the verification step could not run at all
  (fatal to the whole run)

Usage:
    from taskloop.utils.exceptions import ConflictError, TaskNotFoundError

    if task.status == TaskStatus.IN_PROGRESS:
        raise ConflictError("cannot modify in_progress task", task_id=task.id)
"""

from typing import Optional, Any, Dict


# ============================================================================
# Base Exception
# ============================================================================

class TaskLoopError(Exception):
    """
    Base exception for all taskloop errors.

    Carries a machine-readable error code and a details dict so callers can
    serialize the failure without parsing the message.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }

    def __str__(self) -> str:
        return self.message


# ============================================================================
# Configuration and Persistence Errors
# ============================================================================

class ConfigurationError(TaskLoopError):
    """Raised when application settings are invalid."""

    def __init__(
        self,
        setting_name: str,
        message: str,
        actual_value: Optional[Any] = None
    ):
        details = {"setting_name": setting_name}
        if actual_value is not None:
            details["actual_value"] = str(actual_value)

        super().__init__(
            message=f"Configuration error for '{setting_name}': {message}",
            error_code="CONFIG_ERROR",
            details=details
        )
        self.setting_name = setting_name


class ConfigStoreError(TaskLoopError):
    """Raised when the loop config file cannot be loaded or saved."""

    def __init__(
        self,
        path: str,
        operation: str,
        message: str,
        original_error: Optional[Exception] = None
    ):
        super().__init__(
            message=f"{operation} config {path}: {message}",
            error_code="CONFIG_STORE_ERROR",
            details={
                "path": path,
                "operation": operation,
                "original_error": str(original_error) if original_error else None
            }
        )
        self.path = path
        self.operation = operation


# ============================================================================
# Request Errors
# ============================================================================

class ValidationError(TaskLoopError):
    """Raised when request input is invalid."""

    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details={"field": field_name} if field_name else {}
        )
        self.field_name = field_name


class TaskNotFoundError(TaskLoopError):
    """Raised when no task carries the requested id."""

    def __init__(self, task_id: str):
        super().__init__(
            message="task not found",
            error_code="TASK_NOT_FOUND",
            details={"task_id": task_id}
        )
        self.task_id = task_id


class ConflictError(TaskLoopError):
    """Raised when an operation conflicts with the current run or task state."""

    def __init__(self, message: str, task_id: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="CONFLICT",
            details={"task_id": task_id} if task_id else {}
        )
        self.task_id = task_id


# ============================================================================
# Execution Errors
# ============================================================================

class ProviderError(TaskLoopError):
    """Raised when a provider invocation fails; retried by the loop engine."""

    def __init__(
        self,
        provider_name: str,
        message: str,
        output: str = ""
    ):
        super().__init__(
            message=f"{provider_name} provider: {message}",
            error_code="PROVIDER_ERROR",
            details={"provider": provider_name}
        )
        self.provider_name = provider_name
        self.output = output


class GateExecutionError(TaskLoopError):
    """Raised when a gate command cannot be executed at all."""

    def __init__(
        self,
        command: str,
        message: str,
        original_error: Optional[Exception] = None
    ):
        super().__init__(
            message=f"running gate '{command}': {message}",
            error_code="GATE_EXEC_ERROR",
            details={
                "command": command,
                "original_error": str(original_error) if original_error else None
            }
        )
        self.command = command
