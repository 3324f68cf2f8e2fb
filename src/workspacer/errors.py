# =============================================================================
# Error Handling Types (Result + ErrorReport)
# =============================================================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from loguru import logger

T = TypeVar('T')


class ErrorType(Enum):
    CONFIG_MISSING = "config_missing"
    CONFIG_PARSE_ERROR = "config_parse_error"
    VALIDATION_ERROR = "validation_error"
    IO_ERROR = "io_error"
    NOT_FOUND = "not_found"
    CYCLIC_REFERENCE = "cyclic_reference"
    LAUNCH_FAILURE = "launch_failure"
    UI_ERROR = "ui_error"


@dataclass
class Error:
    error_type: ErrorType
    message: str
    context: dict = field(default_factory=dict)
    original_exception: Exception = None


@dataclass
class Result(Generic[T]):
    success: bool
    value: T = None
    error: Error = None

    @staticmethod
    def ok(value: T) -> 'Result[T]':
        return Result(success=True, value=value)

    @staticmethod
    def err(error: Error) -> 'Result[T]':
        return Result(success=False, error=error)

    def is_ok(self) -> bool:
        return self.success

    def is_err(self) -> bool:
        return not self.success


@dataclass
class ErrorReport:
    errors: list[Error] = field(default_factory=list)

    def add_error(self, error: Error):
        self.errors.append(error)
        logger.error(
            "{}",
            error.message,
            operation="error_report",
            status="error",
            error_type=error.error_type.value,
            **error.context
        )

    def collect_result(self, result: Result) -> bool:
        """Collect error from Result into report if failed."""
        if result.is_err():
            self.add_error(result.error)
            return False
        return True

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def log_summary(self, op_trace_id: str):
        """Log final summary for the invocation."""
        logger.info(
            "Operation complete",
            operation="error_report",
            status="failed" if self.has_errors() else "complete",
            trace_id=op_trace_id,
            metrics={
                "total_errors": len(self.errors)
            }
        )
