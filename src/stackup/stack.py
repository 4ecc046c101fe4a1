"""
Stack lifecycle operations.

``Stack`` decides which CloudFormation call is safe for the stack's current
status and blocks until the service reports a terminal status. Ordinary
failures come back as ``False``; a delete that does not end in
DELETE_COMPLETE raises ``UpdateError``.
"""

import logging
import time
from typing import Callable, Dict, Optional

from .config import StackupConfig
from .errors import StackNotFoundError, UpdateError
from .parameters import ParameterInput, normalize_parameters
from .provider import StackDescription, StackStatusProvider
from .status import DELETE_COMPLETE, is_success, is_updatable, needs_replacement
from .watcher import EventCallback, StackEventWatcher

logger = logging.getLogger(__name__)


class Stack:
    """A named CloudFormation stack.

    Holds no cached state: every query goes back to the service.
    """

    def __init__(
        self,
        name: str,
        provider: Optional[StackStatusProvider] = None,
        config: Optional[StackupConfig] = None,
        on_event: Optional[EventCallback] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize a stack handle.

        Args:
            name: Stack name
            provider: CloudFormation access; built from config when omitted
            config: Polling, capability and tag settings
            on_event: Called with every new stack event while waiting
            sleep: Delay function used between polls
        """
        self._name = name
        self.config = config or StackupConfig()
        self.provider = provider or StackStatusProvider(
            region=self.config.region, profile=self.config.profile
        )
        self.on_event = on_event
        self._sleep = sleep

    @property
    def name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"Stack({self._name!r})"

    # Status probes

    def _describe(self) -> StackDescription:
        return self.provider.describe_stack(self._name)

    def deployed(self) -> bool:
        """Check whether the stack exists."""
        try:
            self._describe()
        except StackNotFoundError:
            return False
        return True

    def status(self) -> Optional[str]:
        """Get current stack status, or None if the stack does not exist."""
        try:
            return self._describe().status
        except StackNotFoundError:
            return None

    def outputs(self) -> Dict[str, str]:
        """Get stack outputs as a key/value mapping."""
        try:
            return dict(self._describe().outputs)
        except StackNotFoundError:
            return {}

    def valid(self, template: str) -> bool:
        """Ask the service whether a template is valid."""
        result = self.provider.validate_template(template)
        if not result.valid:
            logger.warning(f"Template rejected: {result.error_code} {result.message or ''}".rstrip())
        return result.valid

    # Event handling

    def _watcher(self, stack_id: str) -> StackEventWatcher:
        return StackEventWatcher(
            self.provider,
            stack_id,
            poll_interval=self.config.poll_interval,
            timeout=self.config.timeout,
            on_event=self.on_event,
            sleep=self._sleep,
        )

    def _begin_watch(self, stack_id: str) -> StackEventWatcher:
        """Create a watcher that ignores events recorded before now."""
        watcher = self._watcher(stack_id)
        watcher.skip_existing_events()
        return watcher

    def wait_for_events(
        self, stack_id: str, watcher: Optional[StackEventWatcher] = None
    ) -> str:
        """Block until the stack reaches a terminal status and return it."""
        watcher = watcher or self._watcher(stack_id)
        return watcher.wait()

    # Mutating operations

    def create(self, template: str, parameters: ParameterInput = None) -> bool:
        """Create the stack and wait for it to finish."""
        logger.info(f"Creating stack {self._name}")
        response = self.provider.create_stack(
            self._name,
            template,
            normalize_parameters(parameters),
            capabilities=self.config.capabilities,
            tags=self.config.tags,
        )
        if not response.stack_id:
            logger.error(f"Stack {self._name} was not created")
            return False

        status = self.wait_for_events(response.stack_id)
        logger.info(f"Stack {self._name} finished in {status}")
        return is_success(status)

    def update(self, template: str, parameters: ParameterInput = None) -> bool:
        """
        Update the stack in place, or replace it when it is rolled back.

        A stack in ROLLBACK_COMPLETE is deleted and created again. Any other
        status that does not accept updates (CREATE_FAILED among them) is
        left alone for inspection.
        """
        if not self.deployed():
            logger.warning(f"Stack {self._name} does not exist, nothing to update")
            return False

        try:
            description = self._describe()
        except StackNotFoundError:
            logger.warning(f"Stack {self._name} disappeared, nothing to update")
            return False
        status = description.status

        if needs_replacement(status):
            logger.info(f"Stack {self._name} is in {status}, replacing it")
            try:
                deleted = self.delete()
            except UpdateError as e:
                logger.error(str(e))
                return False
            if not deleted:
                return False
            return self.create(template, parameters)

        if not is_updatable(status):
            logger.error(f"Stack {self._name} is in {status} and cannot be updated")
            return False

        logger.info(f"Updating stack {self._name}")
        watcher = self._begin_watch(description.stack_id)
        response = self.provider.update_stack(
            self._name,
            template,
            normalize_parameters(parameters),
            capabilities=self.config.capabilities,
            tags=self.config.tags,
        )
        if response.no_changes:
            return True
        if not response.stack_id:
            logger.error(f"Stack {self._name} was not updated")
            return False

        status = self.wait_for_events(response.stack_id, watcher)
        logger.info(f"Stack {self._name} finished in {status}")
        return is_success(status)

    def delete(self) -> bool:
        """
        Delete the stack and wait for it to disappear.

        Returns:
            False if there was no stack, True once it is deleted

        Raises:
            UpdateError: If deletion ends in any status but DELETE_COMPLETE
        """
        if not self.deployed():
            logger.warning(f"Stack {self._name} does not exist, nothing to delete")
            return False

        # Address the stack by id so it stays describable once deleted
        try:
            stack_id = self._describe().stack_id
        except StackNotFoundError:
            logger.warning(f"Stack {self._name} disappeared, nothing to delete")
            return False
        watcher = self._begin_watch(stack_id)

        logger.info(f"Deleting stack {self._name}")
        self.provider.delete_stack(stack_id)

        status = self.wait_for_events(stack_id, watcher)
        if status != DELETE_COMPLETE:
            raise UpdateError(self._name, status)

        logger.info(f"Stack {self._name} deleted")
        return True

    def deploy(self, template: str, parameters: ParameterInput = None) -> bool:
        """Create the stack if it is missing, otherwise update it."""
        if self.deployed():
            return self.update(template, parameters)
        return self.create(template, parameters)
