"""
CloudFormation stack status partitions.
"""

from typing import Optional

CREATE_COMPLETE = "CREATE_COMPLETE"
CREATE_FAILED = "CREATE_FAILED"
UPDATE_COMPLETE = "UPDATE_COMPLETE"
ROLLBACK_COMPLETE = "ROLLBACK_COMPLETE"
DELETE_COMPLETE = "DELETE_COMPLETE"
DELETE_FAILED = "DELETE_FAILED"

# Statuses from which UpdateStack is accepted in place
UPDATABLE_STATUSES = frozenset(
    [
        "CREATE_COMPLETE",
        "UPDATE_COMPLETE",
        "UPDATE_ROLLBACK_COMPLETE",
        "IMPORT_COMPLETE",
        "IMPORT_ROLLBACK_COMPLETE",
    ]
)

FAILED_STATUSES = frozenset(
    [
        "CREATE_FAILED",
        "ROLLBACK_FAILED",
        "DELETE_FAILED",
        "UPDATE_FAILED",
        "UPDATE_ROLLBACK_FAILED",
        "IMPORT_ROLLBACK_FAILED",
    ]
)


def is_in_progress(status: Optional[str]) -> bool:
    """Check whether the service is still working on the stack."""
    return bool(status) and status.endswith("_IN_PROGRESS")


def is_updatable(status: Optional[str]) -> bool:
    return status in UPDATABLE_STATUSES


def needs_replacement(status: Optional[str]) -> bool:
    """A rolled back create leaves a stack that can only be deleted."""
    return status == ROLLBACK_COMPLETE


def is_success(status: Optional[str]) -> bool:
    """
    Check whether a create or update reached its intended state.

    Rollback and delete completions are terminal but not successful.
    """
    if not status or not status.endswith("_COMPLETE"):
        return False
    return "ROLLBACK" not in status and status != DELETE_COMPLETE
