"""
Stack failure diagnostics.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List

from .errors import StackNotFoundError
from .provider import StackEvent, StackStatusProvider
from .status import CREATE_FAILED, DELETE_FAILED, FAILED_STATUSES, ROLLBACK_COMPLETE

logger = logging.getLogger(__name__)

RESOURCE_FAILURE_STATUSES = frozenset(["CREATE_FAILED", "UPDATE_FAILED", "DELETE_FAILED"])


def recommendations_for(resource_type: str, reason: str) -> List[str]:
    """Suggest fixes for a failed resource based on its failure reason."""
    hints = []
    lowered = reason.lower()

    if resource_type == "AWS::S3::Bucket":
        if "bucketnotempty" in lowered or "bucket is not empty" in lowered:
            hints.append("Empty the S3 bucket before deleting the stack")
        elif "already exists" in lowered:
            hints.append("S3 bucket name already exists. Choose a different name.")

    if "AccessDenied" in reason or "is not authorized" in reason:
        hints.append("Check IAM permissions for CloudFormation")

    if resource_type.startswith("AWS::EC2::") and "DependencyViolation" in reason:
        hints.append("VPC resources have dependencies. Check security groups and ENIs.")

    if "AWS::EC2::NetworkInterface" in reason and "Lambda" in reason:
        hints.append("Lambda ENIs can take time to delete. Wait 10-15 minutes.")

    if "timeout" in lowered or "timed out" in lowered:
        hints.append("Operation timed out. Check resource logs for details.")

    return hints


class StackDiagnostics:
    """Explain why a stack ended up in a failed state."""

    def __init__(self, provider: StackStatusProvider):
        self.provider = provider

    def diagnose(self, stack_name: str) -> Dict[str, Any]:
        """
        Collect failure details for a stack.

        Returns:
            Dict with ``stack_name``, ``status``, ``status_reason``,
            ``failed_resources``, ``blocking_resources`` and
            ``recommendations``
        """
        diagnosis: Dict[str, Any] = {
            "stack_name": stack_name,
            "status": None,
            "status_reason": None,
            "failed_resources": [],
            "blocking_resources": [],
            "recommendations": [],
        }

        try:
            description = self.provider.describe_stack(stack_name)
        except StackNotFoundError:
            diagnosis["recommendations"].append("Stack does not exist")
            return diagnosis

        diagnosis["status"] = description.status
        diagnosis["status_reason"] = description.status_reason

        for event in self.provider.stack_events(stack_name):
            if event.status not in RESOURCE_FAILURE_STATUSES:
                continue
            diagnosis["failed_resources"].append(self._failed_resource(event))
            diagnosis["recommendations"].extend(
                recommendations_for(event.resource_type, event.reason or "")
            )

        if description.status == ROLLBACK_COMPLETE:
            diagnosis["recommendations"].append(
                "Stack was rolled back after a failed create. Deploying again will replace it."
            )
        elif description.status == CREATE_FAILED:
            diagnosis["recommendations"].append(
                "Stack creation failed. Inspect it, then delete it before deploying again."
            )
        elif description.status == DELETE_FAILED:
            for resource in self.provider.stack_resources(stack_name):
                if resource.get("ResourceStatus") == DELETE_FAILED:
                    diagnosis["blocking_resources"].append(
                        {
                            "logical_id": resource.get("LogicalResourceId"),
                            "resource_type": resource.get("ResourceType"),
                            "physical_id": resource.get("PhysicalResourceId", "N/A"),
                        }
                    )

        # Keep first occurrence order
        diagnosis["recommendations"] = list(dict.fromkeys(diagnosis["recommendations"]))
        return diagnosis

    @staticmethod
    def _failed_resource(event: StackEvent) -> Dict[str, Any]:
        return {
            "logical_id": event.logical_id,
            "resource_type": event.resource_type,
            "status": event.status,
            "reason": event.reason or "No reason provided",
            "timestamp": str(event.timestamp),
        }

    def generate_report(self, stack_name: str) -> str:
        """Render the diagnosis as human-readable text."""
        diagnosis = self.diagnose(stack_name)

        lines = [
            f"Stack Diagnostic Report: {stack_name}",
            f"Time: {datetime.now().isoformat()}",
            "=" * 60,
        ]

        if not diagnosis["status"]:
            lines.append("Stack does not exist")
            return "\n".join(lines)

        lines.append(f"Status: {diagnosis['status']}")
        if diagnosis["status_reason"]:
            lines.append(f"Reason: {diagnosis['status_reason']}")

        if diagnosis["failed_resources"]:
            lines.append(f"\nFailed Resources ({len(diagnosis['failed_resources'])}):")
            for resource in diagnosis["failed_resources"]:
                lines.append(
                    f"  - {resource['logical_id']} ({resource['resource_type']}) "
                    f"{resource['status']}: {resource['reason']}"
                )

        if diagnosis["blocking_resources"]:
            lines.append("\nResources preventing deletion:")
            for resource in diagnosis["blocking_resources"]:
                lines.append(
                    f"  - {resource['logical_id']} ({resource['resource_type']}) "
                    f"{resource['physical_id']}"
                )

        if diagnosis["recommendations"]:
            lines.append("\nRecommendations:")
            for recommendation in diagnosis["recommendations"]:
                lines.append(f"  - {recommendation}")
        elif diagnosis["status"] not in FAILED_STATUSES:
            lines.append("\nNo problems found")

        return "\n".join(lines)
