"""Wait for a stack to converge while streaming its events."""

import logging
import threading
from datetime import datetime

from stackdeploy.aws.client import CloudFormationApi
from stackdeploy.errors import StackLookupError
from stackdeploy.lookup import StackLookup
from stackdeploy.models import Stack, StackEvent
from stackdeploy.polling import poll_attempts
from stackdeploy.sink import ProgressSink

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = frozenset({"CREATE_COMPLETE", "UPDATE_COMPLETE"})


def is_terminal(status: str) -> bool:
    """A stack status is terminal once it is no longer IN_PROGRESS."""
    return not status.endswith("IN_PROGRESS")


def is_success(status: str) -> bool:
    """Only a completed create or update counts as success; rollbacks do not."""
    return status in SUCCESS_STATUSES


class DeploymentMonitor:
    """Polls a stack until it leaves its IN_PROGRESS state."""

    def __init__(
        self,
        client: CloudFormationApi,
        sink: ProgressSink | None = None,
        lookup: StackLookup | None = None,
        poll_interval: float = 3.0,
        max_poll_attempts: int | None = None,
        cancel: threading.Event | None = None,
    ):
        self._client = client
        self._sink = sink or ProgressSink()
        self._lookup = lookup or StackLookup(client)
        self._poll_interval = poll_interval
        self._max_poll_attempts = max_poll_attempts
        self._cancel = cancel

    def wait(self, stack_name: str, since: datetime) -> Stack:
        """Block until the stack reaches a terminal status and return it.

        Events newer than ``since`` are reported to the sink oldest first,
        each exactly once.
        """
        last_seen: str | None = None

        for _ in poll_attempts(
            self._poll_interval,
            self._max_poll_attempts,
            self._cancel,
            what=f"stack {stack_name}",
        ):
            stack = self._lookup.find(stack_name)
            if stack is None:
                raise StackLookupError(f"Stack {stack_name!r} disappeared while deploying")

            events = self.poll_events(stack_name, since, last_seen)
            if events:
                last_seen = events[-1].event_id
            for event in events:
                self._sink.event_observed(event)

            if is_terminal(stack.status):
                logger.info("Stack %s reached %s", stack_name, stack.status)
                return stack

        raise AssertionError("unreachable")  # pragma: no cover

    def poll_events(
        self, stack_name: str, since: datetime, last_seen: str | None = None
    ) -> list[StackEvent]:
        """Fetch events newer than ``last_seen`` and not older than ``since``.

        The service returns events newest first, so paging stops at the first
        event already seen or older than the floor. The batch is returned
        oldest first.
        """
        events: list[StackEvent] = []
        next_token = None

        while True:
            page = self._client.describe_stack_events(stack_name, next_token)

            for event in page.events:
                if event.event_id == last_seen or event.timestamp < since:
                    events.reverse()
                    return events
                events.append(event)

            next_token = page.next_token
            if not next_token:
                break

        events.reverse()
        return events
