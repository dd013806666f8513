"""Orchestrates a two-phase CloudFormation deploy: propose, then apply."""

import logging
import threading
from datetime import UTC, datetime

from botocore.exceptions import ClientError

from stackdeploy.aws.client import CloudFormationApi
from stackdeploy.changeset import ChangeSetManager
from stackdeploy.config import DeployOptions
from stackdeploy.errors import ConfigurationError, TemplateNotFoundError, TemplateValidationError
from stackdeploy.lookup import StackLookup
from stackdeploy.models import CreationOutcome, DeployResult
from stackdeploy.monitor import DeploymentMonitor, is_success
from stackdeploy.outputs import extract_outputs
from stackdeploy.sink import ProgressSink
from stackdeploy.template import FileTemplateSource

logger = logging.getLogger(__name__)


class Deployer:
    """Deploys one template to one stack per call.

    Holds no per-deploy state; the idempotency token, event floor and
    last-seen event id all live inside a single ``deploy`` call.
    """

    def __init__(
        self,
        client: CloudFormationApi,
        sink: ProgressSink | None = None,
        template_source: FileTemplateSource | None = None,
        change_set_poll_interval: float = 1.0,
        stack_poll_interval: float = 3.0,
        max_poll_attempts: int | None = None,
        cancel: threading.Event | None = None,
    ):
        if not isinstance(client, CloudFormationApi):
            raise ConfigurationError(
                f"client must implement the CloudFormation API, got {type(client).__name__}"
            )
        self._client = client
        self._sink = sink or ProgressSink()
        self._templates = template_source or FileTemplateSource()

        lookup = StackLookup(client)
        self._change_sets = ChangeSetManager(
            client,
            lookup=lookup,
            poll_interval=change_set_poll_interval,
            max_poll_attempts=max_poll_attempts,
            cancel=cancel,
        )
        self._monitor = DeploymentMonitor(
            client,
            sink=self._sink,
            lookup=lookup,
            poll_interval=stack_poll_interval,
            max_poll_attempts=max_poll_attempts,
            cancel=cancel,
        )

    def deploy(self, options: DeployOptions) -> DeployResult:
        """Deploy and return the result.

        Bad options and missing or invalid templates raise. A failed change
        set or a stack that ends in a failure status is returned as a result
        with ``success=False``.
        """
        options.validate()
        template_body = self._load_template(options.template_path)

        token = options.resolved_token()
        change_set = self._change_sets.propose(
            options.name,
            template_body,
            options.parameters,
            token,
            description=options.resolved_description(),
        )
        self._sink.change_set_created(change_set)

        review = self._change_sets.await_creation(change_set)

        if review.outcome == CreationOutcome.NO_CHANGES:
            self._sink.no_changes(options.name, review.status_reason)
            previous = change_set.previous_stack
            outputs = extract_outputs(previous) if previous else None
            if outputs:
                self._sink.outputs_ready(outputs)
            return DeployResult(
                stack_name=options.name,
                success=True,
                status=previous.status if previous else CreationOutcome.NO_CHANGES.value,
                reason=review.status_reason,
                outputs=outputs,
                change_set_id=change_set.change_set_id,
                change_set_type=change_set.type,
                changed=False,
            )

        if review.outcome == CreationOutcome.FAILED:
            return DeployResult(
                stack_name=options.name,
                success=False,
                status=review.status.value,
                reason=review.status_reason,
                change_set_id=change_set.change_set_id,
                change_set_type=change_set.type,
            )

        self._sink.changes_proposed(change_set, self._change_sets.list_changes(change_set))

        since = datetime.now(UTC)
        self._change_sets.execute(change_set, token)
        self._sink.execution_started(change_set)

        if not options.wait_for_stack:
            logger.info("Not waiting for %s to finish", options.name)
            return DeployResult(
                stack_name=options.name,
                success=True,
                status=f"{change_set.type.value}_IN_PROGRESS",
                reason="Change set executed without waiting for completion",
                change_set_id=change_set.change_set_id,
                change_set_type=change_set.type,
            )

        stack = self._monitor.wait(options.name, since)
        succeeded = is_success(stack.status)
        self._sink.stack_finished(stack, succeeded)

        if not succeeded:
            logger.warning(
                "Stack %s failed to deploy: %s (%s)",
                stack.name,
                stack.status,
                stack.status_reason,
            )
            return DeployResult(
                stack_name=options.name,
                success=False,
                status=stack.status,
                reason=stack.status_reason,
                change_set_id=change_set.change_set_id,
                change_set_type=change_set.type,
            )

        outputs = extract_outputs(stack)
        if outputs:
            self._sink.outputs_ready(outputs)
        return DeployResult(
            stack_name=options.name,
            success=True,
            status=stack.status,
            reason=stack.status_reason,
            outputs=outputs,
            change_set_id=change_set.change_set_id,
            change_set_type=change_set.type,
        )

    def _load_template(self, template_path) -> str:
        if not self._templates.exists(template_path):
            raise TemplateNotFoundError(f"Template file does not exist: {template_path}")
        body = self._templates.read(template_path)
        try:
            self._client.validate_template(body)
        except ClientError as e:
            raise TemplateValidationError(f"Invalid template {template_path}: {e}") from e
        self._sink.template_validated(str(template_path))
        return body
