"""Create, review, execute and discard CloudFormation change sets."""

import logging
import threading
from collections.abc import Mapping

from stackdeploy.aws.client import CloudFormationApi
from stackdeploy.lookup import StackLookup
from stackdeploy.models import (
    ChangeSet,
    ChangeSetReview,
    ChangeSetStatus,
    ChangeSetType,
    CreationOutcome,
    ResourceChange,
)
from stackdeploy.polling import poll_attempts

logger = logging.getLogger(__name__)

# Status reasons CloudFormation uses when a change set would change nothing.
NO_CHANGE_REASONS = (
    "didn't contain changes",
    "No updates are to be performed",
)


def build_parameters(parameters: Mapping[str, object]) -> list[dict[str, str]]:
    """Convert a parameter mapping into CloudFormation parameter records."""
    return [
        {"ParameterKey": str(key), "ParameterValue": str(value)}
        for key, value in parameters.items()
    ]


def is_no_change_reason(reason: str | None) -> bool:
    """True when a FAILED change set only failed because there was nothing to change."""
    return bool(reason) and any(marker in reason for marker in NO_CHANGE_REASONS)


class ChangeSetManager:
    """Drives one change set from proposal to execution."""

    def __init__(
        self,
        client: CloudFormationApi,
        lookup: StackLookup | None = None,
        poll_interval: float = 1.0,
        max_poll_attempts: int | None = None,
        cancel: threading.Event | None = None,
    ):
        self._client = client
        self._lookup = lookup or StackLookup(client)
        self._poll_interval = poll_interval
        self._max_poll_attempts = max_poll_attempts
        self._cancel = cancel

    def propose(
        self,
        stack_name: str,
        template_body: str,
        parameters: Mapping[str, object],
        idempotency_token: str,
        description: str = "Stack Updates.",
    ) -> ChangeSet:
        """Create a change set. CREATE if the stack does not exist yet, otherwise UPDATE."""
        previous = self._lookup.find(stack_name)
        change_set_type = ChangeSetType.UPDATE if previous else ChangeSetType.CREATE
        name = f"ChangeSet-{idempotency_token}"

        change_set_id = self._client.create_change_set(
            stack_name=stack_name,
            template_body=template_body,
            parameters=build_parameters(parameters),
            change_set_name=name,
            client_token=idempotency_token,
            description=description,
            change_set_type=change_set_type.value,
        )
        logger.info("Created %s change set %s for %s", change_set_type, change_set_id, stack_name)

        return ChangeSet(
            change_set_id=change_set_id,
            name=name,
            stack_name=stack_name,
            type=change_set_type,
            previous_stack=previous,
        )

    def await_creation(self, change_set: ChangeSet) -> ChangeSetReview:
        """Poll until the change set is computed.

        A change set that failed only because there is nothing to change is
        deleted and reported as NO_CHANGES. Any other failure is reported as
        FAILED and left in place so it can be inspected.
        """
        for _ in poll_attempts(
            self._poll_interval,
            self._max_poll_attempts,
            self._cancel,
            what=f"change set {change_set.change_set_id}",
        ):
            desc = self._client.describe_change_set(change_set.change_set_id)

            if desc.status == ChangeSetStatus.CREATE_COMPLETE:
                return ChangeSetReview(CreationOutcome.READY, desc.status, desc.status_reason)

            if desc.status == ChangeSetStatus.FAILED:
                if is_no_change_reason(desc.status_reason):
                    self.discard(change_set)
                    return ChangeSetReview(
                        CreationOutcome.NO_CHANGES, desc.status, desc.status_reason
                    )
                logger.warning(
                    "Change set %s failed: %s", change_set.change_set_id, desc.status_reason
                )
                return ChangeSetReview(CreationOutcome.FAILED, desc.status, desc.status_reason)

        raise AssertionError("unreachable")  # pragma: no cover

    def list_changes(self, change_set: ChangeSet) -> list[ResourceChange]:
        """Return the resource changes a change set would apply."""
        return self._client.describe_change_set(change_set.change_set_id).changes

    def execute(self, change_set: ChangeSet, idempotency_token: str) -> None:
        """Start executing the change set and return without waiting."""
        logger.info("Executing change set %s", change_set.change_set_id)
        self._client.execute_change_set(change_set.change_set_id, idempotency_token)

    def discard(self, change_set: ChangeSet) -> None:
        """Delete the change set from the service."""
        logger.info("Deleting change set %s", change_set.change_set_id)
        self._client.delete_change_set(change_set.change_set_id)
