"""
Operation results.

Operations never raise to their caller: the report or the error is wrapped in
an ``OperationResult``, and rendering to text is a separate step.
"""
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

from exchanges.errors import IndodaxError

R = TypeVar("R")


@dataclass(frozen=True)
class OperationError:
    """Structured failure of one operation."""

    header: str
    message: str
    error_type: str
    error_code: Optional[str] = None

    def render(self) -> str:
        return f"{self.header}\n{self.message}"


@dataclass(frozen=True)
class OperationResult(Generic[R]):
    operation: str
    report: Optional[R] = None
    error: Optional[OperationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def render(self) -> str:
        """Render the report, or the failure header and message."""
        if self.error is not None:
            return self.error.render()
        return self.report.render()  # type: ignore[union-attr]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "ok": self.ok,
            "error": None if self.error is None else {
                "header": self.error.header,
                "message": self.error.message,
                "error_type": self.error.error_type,
                "error_code": self.error.error_code,
            },
        }


async def run_operation(
    operation: str,
    failure_header: str,
    action: Callable[[], Awaitable[R]]
) -> OperationResult[R]:
    """
    Run an operation and capture any failure as an OperationError.

    Args:
        operation: API method name, used in logs
        failure_header: First line of the failure text
        action: Coroutine factory that fetches and parses the report

    Returns:
        OperationResult holding either the report or the error
    """
    try:
        report = await action()
    except Exception as e:
        logging.error(f"{operation} failed - {type(e).__name__}: {e}")
        error_code = e.error_code if isinstance(e, IndodaxError) else None
        return OperationResult(
            operation=operation,
            error=OperationError(
                header=failure_header,
                message=str(e),
                error_type=type(e).__name__,
                error_code=error_code,
            ),
        )
    return OperationResult(operation=operation, report=report)
