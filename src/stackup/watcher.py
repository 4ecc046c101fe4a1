"""
Polling watcher for stack progress.
"""

import logging
import time
from typing import Callable, List, Optional, Set

from .errors import StackNotFoundError, StackWaitTimeoutError
from .provider import StackEvent, StackStatusProvider
from .status import DELETE_COMPLETE, is_in_progress

logger = logging.getLogger(__name__)

EventCallback = Callable[[StackEvent], None]


class StackEventWatcher:
    """
    Follow one stack operation until it reaches a terminal status.

    Each watcher serves a single operation. Events are reported once, oldest
    first, through the logger and the optional ``on_event`` callback.
    """

    def __init__(
        self,
        provider: StackStatusProvider,
        stack_id: str,
        poll_interval: float = 5.0,
        timeout: float = 3600.0,
        on_event: Optional[EventCallback] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.provider = provider
        self.stack_id = stack_id
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.on_event = on_event
        self._sleep = sleep
        self._clock = clock
        self._seen: Set[str] = set()

    def new_events(self) -> List[StackEvent]:
        """Fetch events not reported yet, in chronological order."""
        try:
            events = self.provider.stack_events(self.stack_id)
        except StackNotFoundError:
            return []

        fresh = [event for event in events if event.event_id not in self._seen]
        self._seen.update(event.event_id for event in fresh)
        fresh.reverse()
        return fresh

    def skip_existing_events(self) -> None:
        """Mark everything already recorded as seen."""
        self.new_events()

    def _report(self) -> None:
        for event in self.new_events():
            logger.info(str(event))
            if self.on_event:
                self.on_event(event)

    def _current_status(self) -> Optional[str]:
        try:
            return self.provider.describe_stack(self.stack_id).status
        except StackNotFoundError:
            # Deleted stacks addressed by name stop being describable
            return None

    def wait(self) -> str:
        """
        Block until the stack leaves its in-progress states.

        Returns:
            The terminal status

        Raises:
            StackWaitTimeoutError: If no terminal status is seen within timeout
        """
        started = self._clock()
        status: Optional[str] = None

        while True:
            self._report()
            status = self._current_status()

            if status is None:
                logger.debug(f"Stack {self.stack_id} is gone, treating as deleted")
                return DELETE_COMPLETE

            if not is_in_progress(status):
                self._report()
                logger.debug(f"Stack {self.stack_id} reached {status}")
                return status

            elapsed = self._clock() - started
            if elapsed >= self.timeout:
                raise StackWaitTimeoutError(self.stack_id, status, elapsed)

            self._sleep(self.poll_interval)
