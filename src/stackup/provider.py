"""
CloudFormation access for stack operations.

Wraps the boto3 client and turns its dict responses into small typed results
so callers can branch on present/absent fields explicitly.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import boto3
from botocore.exceptions import ClientError

from .errors import StackNotFoundError
from .parameters import Parameter

logger = logging.getLogger(__name__)

NO_UPDATES_MESSAGE = "No updates are to be performed"

# CreateStack/UpdateStack errors meaning the request itself was refused
REJECTION_CODES = frozenset(
    [
        "ValidationError",
        "AlreadyExistsException",
        "InsufficientCapabilitiesException",
        "LimitExceededException",
        "TokenAlreadyExistsException",
    ]
)


@dataclass(frozen=True)
class StackResponse:
    """Result of a CreateStack or UpdateStack call."""

    stack_id: Optional[str] = None
    no_changes: bool = False


@dataclass(frozen=True)
class StackDescription:
    """Current state of a stack as reported by DescribeStacks."""

    stack_id: str
    name: str
    status: str
    status_reason: Optional[str] = None
    outputs: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class StackEvent:
    """A single entry from DescribeStackEvents."""

    event_id: str
    timestamp: Optional[datetime]
    logical_id: str
    resource_type: str
    status: str
    reason: Optional[str] = None

    def __str__(self) -> str:
        line = f"{self.logical_id} ({self.resource_type}): {self.status}"
        if self.reason:
            line += f" - {self.reason}"
        return line


@dataclass(frozen=True)
class ValidationResult:
    """Result of ValidateTemplate."""

    error_code: Optional[str] = None
    message: Optional[str] = None
    parameters: List[Dict[str, Any]] = field(default_factory=list)
    capabilities: List[str] = field(default_factory=list)
    description: str = ""

    @property
    def valid(self) -> bool:
        return self.error_code is None


def is_rejection(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in REJECTION_CODES


def is_not_found(error: ClientError) -> bool:
    """CloudFormation reports missing stacks as a ValidationError."""
    return "does not exist" in str(error)


class StackStatusProvider:
    """Issue CloudFormation calls on behalf of a Stack."""

    def __init__(
        self,
        region: Optional[str] = None,
        profile: Optional[str] = None,
        client: Optional[Any] = None,
    ):
        """
        Initialize the provider.

        Args:
            region: AWS region
            profile: AWS profile to use
            client: Pre-built CloudFormation client, used as is when given
        """
        self.region = region or "us-east-1"
        self.profile = profile

        if client is None:
            session_args = {"region_name": self.region}
            if profile:
                session_args["profile_name"] = profile

            session = boto3.Session(**session_args)
            client = session.client("cloudformation")

        self.cloudformation = client

    def _stack_args(
        self,
        name: str,
        template: str,
        parameters: Sequence[Parameter],
        capabilities: Optional[Sequence[str]],
        tags: Optional[Dict[str, str]],
    ) -> Dict[str, Any]:
        args: Dict[str, Any] = {
            "StackName": name,
            "TemplateBody": template,
            "Parameters": [p.to_cloudformation() for p in parameters],
        }
        if capabilities:
            args["Capabilities"] = list(capabilities)
        if tags:
            args["Tags"] = [{"Key": k, "Value": v} for k, v in tags.items()]
        return args

    def create_stack(
        self,
        name: str,
        template: str,
        parameters: Sequence[Parameter] = (),
        capabilities: Optional[Sequence[str]] = None,
        tags: Optional[Dict[str, str]] = None,
    ) -> StackResponse:
        """Start creating a stack."""
        args = self._stack_args(name, template, parameters, capabilities, tags)
        try:
            response = self.cloudformation.create_stack(**args)
        except ClientError as e:
            if is_rejection(e):
                logger.error(f"CreateStack rejected for {name}: {e}")
                return StackResponse()
            raise
        return StackResponse(stack_id=response.get("StackId") or None)

    def update_stack(
        self,
        name: str,
        template: str,
        parameters: Sequence[Parameter] = (),
        capabilities: Optional[Sequence[str]] = None,
        tags: Optional[Dict[str, str]] = None,
    ) -> StackResponse:
        """Start updating a stack; an unchanged stack yields ``no_changes``."""
        args = self._stack_args(name, template, parameters, capabilities, tags)
        try:
            response = self.cloudformation.update_stack(**args)
        except ClientError as e:
            if NO_UPDATES_MESSAGE in str(e):
                logger.info(f"Stack {name} is already up to date")
                return StackResponse(no_changes=True)
            if is_rejection(e):
                logger.error(f"UpdateStack rejected for {name}: {e}")
                return StackResponse()
            raise
        return StackResponse(stack_id=response.get("StackId") or None)

    def delete_stack(self, name: str) -> None:
        """Request deletion; completion is observed by polling."""
        self.cloudformation.delete_stack(StackName=name)

    def describe_stack(self, name: str) -> StackDescription:
        """Describe a stack by name or id."""
        try:
            response = self.cloudformation.describe_stacks(StackName=name)
        except ClientError as e:
            if is_not_found(e):
                raise StackNotFoundError(name) from e
            raise

        if not response.get("Stacks"):
            raise StackNotFoundError(name)

        stack = response["Stacks"][0]
        outputs = {
            output["OutputKey"]: output["OutputValue"]
            for output in stack.get("Outputs", [])
        }
        return StackDescription(
            stack_id=stack["StackId"],
            name=stack["StackName"],
            status=str(stack["StackStatus"]),
            status_reason=stack.get("StackStatusReason"),
            outputs=outputs,
        )

    def stack_events(self, name: str) -> List[StackEvent]:
        """Return the most recent events for a stack, newest first."""
        try:
            response = self.cloudformation.describe_stack_events(StackName=name)
        except ClientError as e:
            if is_not_found(e):
                raise StackNotFoundError(name) from e
            raise

        return [
            StackEvent(
                event_id=event["EventId"],
                timestamp=event.get("Timestamp"),
                logical_id=event.get("LogicalResourceId", ""),
                resource_type=event.get("ResourceType", ""),
                status=event.get("ResourceStatus", ""),
                reason=event.get("ResourceStatusReason"),
            )
            for event in response.get("StackEvents", [])
        ]

    def stack_resources(self, name: str) -> List[Dict[str, Any]]:
        """Return the raw resource list of a stack."""
        try:
            response = self.cloudformation.describe_stack_resources(StackName=name)
        except ClientError as e:
            if is_not_found(e):
                raise StackNotFoundError(name) from e
            raise
        return list(response.get("StackResources", []))

    def validate_template(self, template: str) -> ValidationResult:
        """Validate a template body; service rejections become an error code."""
        try:
            response = self.cloudformation.validate_template(TemplateBody=template)
        except ClientError as e:
            return ValidationResult(
                error_code=e.response.get("Error", {}).get("Code", "Unknown"),
                message=e.response.get("Error", {}).get("Message", str(e)),
            )

        return ValidationResult(
            error_code=response.get("code"),
            parameters=response.get("Parameters", []),
            capabilities=response.get("Capabilities", []),
            description=response.get("Description", ""),
        )
