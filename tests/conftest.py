"""
Shared fixtures for stackup tests.
"""

from unittest.mock import Mock

import pytest

from stackup.config import StackupConfig
from stackup.provider import StackDescription, StackStatusProvider
from stackup.stack import Stack

STACK_ID = "arn:aws:cloudformation:us-east-1:123456789012:stack/stack_name/1"


def _describe(status: str, **kwargs) -> StackDescription:
    return StackDescription(stack_id=STACK_ID, name="stack_name", status=status, **kwargs)


@pytest.fixture
def describe():
    """Factory for descriptions of the test stack in a given status."""
    return _describe


@pytest.fixture
def provider() -> Mock:
    """A provider double; the stack exists in CREATE_COMPLETE by default."""
    mock_provider = Mock(spec=StackStatusProvider)
    mock_provider.describe_stack.return_value = _describe("CREATE_COMPLETE")
    mock_provider.stack_events.return_value = []
    return mock_provider


@pytest.fixture
def config() -> StackupConfig:
    return StackupConfig(poll_interval=1.0, timeout=30.0, capabilities=["CAPABILITY_IAM"])


@pytest.fixture
def stack(provider: Mock, config: StackupConfig) -> Stack:
    return Stack("stack_name", provider=provider, config=config, sleep=Mock())
