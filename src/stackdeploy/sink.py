"""Progress events emitted while a deploy runs.

The deployer never prints. It calls hooks on a ProgressSink, and the caller
decides how (or whether) to render them. The base class ignores everything,
so ``ProgressSink()`` is the silent sink.
"""

import logging

from stackdeploy.models import ChangeSet, ResourceChange, Stack, StackEvent

logger = logging.getLogger(__name__)


class ProgressSink:
    """Receives deploy progress. Every hook is a no-op by default."""

    def template_validated(self, template_path: str) -> None:
        pass

    def change_set_created(self, change_set: ChangeSet) -> None:
        pass

    def no_changes(self, stack_name: str, reason: str | None) -> None:
        pass

    def changes_proposed(self, change_set: ChangeSet, changes: list[ResourceChange]) -> None:
        pass

    def execution_started(self, change_set: ChangeSet) -> None:
        pass

    def event_observed(self, event: StackEvent) -> None:
        pass

    def stack_finished(self, stack: Stack, success: bool) -> None:
        pass

    def outputs_ready(self, outputs: dict[str, str]) -> None:
        pass


class LoggingSink(ProgressSink):
    """Forwards progress to the standard logging module."""

    def __init__(self, log: logging.Logger | None = None):
        self._log = log or logger

    def template_validated(self, template_path: str) -> None:
        self._log.info("Valid template file: %s", template_path)

    def change_set_created(self, change_set: ChangeSet) -> None:
        self._log.info(
            "Waiting for %s change set %s to be reviewed",
            change_set.type.value,
            change_set.change_set_id,
        )

    def no_changes(self, stack_name: str, reason: str | None) -> None:
        self._log.info("No changes required for %s", stack_name)

    def changes_proposed(self, change_set: ChangeSet, changes: list[ResourceChange]) -> None:
        for change in changes:
            self._log.info(
                "%s %s (%s) replacement=%s",
                change.action,
                change.logical_id,
                change.resource_type,
                change.replacement,
            )

    def execution_started(self, change_set: ChangeSet) -> None:
        self._log.info("Executing change set %s", change_set.change_set_id)

    def event_observed(self, event: StackEvent) -> None:
        if event.status_reason and not event.status.endswith("IN_PROGRESS"):
            self._log.info(
                "%s %s %s: %s",
                event.timestamp.isoformat(),
                event.logical_id,
                event.status,
                event.status_reason,
            )
        else:
            self._log.info("%s %s %s", event.timestamp.isoformat(), event.logical_id, event.status)

    def stack_finished(self, stack: Stack, success: bool) -> None:
        if success:
            self._log.info("Stack %s finished: %s", stack.name, stack.status)
        else:
            self._log.warning(
                "Stack %s failed: %s (%s)", stack.name, stack.status, stack.status_reason
            )

    def outputs_ready(self, outputs: dict[str, str]) -> None:
        for key, value in outputs.items():
            self._log.info("Output %s = %s", key, value)
