"""
Error types raised by stack operations.
"""

from typing import Optional


class StackupError(Exception):
    """Base class for stack lifecycle errors."""


class StackNotFoundError(StackupError):
    """The orchestration service has no stack with the given name or id."""

    def __init__(self, stack_name: str):
        super().__init__(f"Stack {stack_name} does not exist")
        self.stack_name = stack_name


class UpdateError(StackupError):
    """A delete finished in a status other than DELETE_COMPLETE."""

    def __init__(self, stack_name: str, status: Optional[str]):
        super().__init__(f"Stack {stack_name} ended in {status}, expected DELETE_COMPLETE")
        self.stack_name = stack_name
        self.status = status


class StackWaitTimeoutError(StackupError):
    """Polling gave up before the stack reached a terminal status."""

    def __init__(self, stack_name: str, last_status: Optional[str], elapsed: float):
        super().__init__(
            f"Timed out after {elapsed:.0f}s waiting for stack {stack_name} "
            f"(last status: {last_status or 'unknown'})"
        )
        self.stack_name = stack_name
        self.last_status = last_status
        self.elapsed = elapsed
