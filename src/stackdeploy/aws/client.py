"""Thin boto3 wrapper for the CloudFormation change-set API calls."""

from typing import Protocol, runtime_checkable

import boto3
from botocore.exceptions import ClientError

from stackdeploy.models import (
    ChangeDetail,
    ChangeSetDescription,
    ChangeSetStatus,
    EventPage,
    ResourceChange,
    Stack,
    StackEvent,
    StackOutput,
)


@runtime_checkable
class CloudFormationApi(Protocol):
    """The orchestration-service calls a deploy needs.

    CloudFormationClient is the real implementation; tests substitute fakes.
    """

    def validate_template(self, template_body: str) -> None: ...

    def create_change_set(
        self,
        stack_name: str,
        template_body: str,
        parameters: list[dict[str, str]],
        change_set_name: str,
        client_token: str,
        description: str,
        change_set_type: str,
    ) -> str: ...

    def describe_change_set(self, change_set_id: str) -> ChangeSetDescription: ...

    def execute_change_set(self, change_set_id: str, client_token: str) -> None: ...

    def delete_change_set(self, change_set_id: str) -> None: ...

    def describe_stacks(self, stack_name: str) -> list[Stack]: ...

    def describe_stack_events(self, stack_name: str, next_token: str | None = None) -> EventPage: ...


def _is_missing_stack(error: ClientError) -> bool:
    err = error.response.get("Error", {})
    return err.get("Code") == "ValidationError" and "does not exist" in err.get("Message", "")


def _parse_stack(stack: dict) -> Stack:
    return Stack(
        name=stack["StackName"],
        stack_id=stack["StackId"],
        status=stack["StackStatus"],
        status_reason=stack.get("StackStatusReason"),
        outputs=[
            StackOutput(
                key=o["OutputKey"],
                value=o["OutputValue"],
                description=o.get("Description"),
            )
            for o in stack.get("Outputs", [])
        ],
    )


def _parse_resource_change(change: dict) -> ResourceChange:
    rc = change["ResourceChange"]
    return ResourceChange(
        action=rc["Action"],
        logical_id=rc["LogicalResourceId"],
        physical_id=rc.get("PhysicalResourceId"),
        resource_type=rc["ResourceType"],
        replacement=rc.get("Replacement"),
        scope=list(rc.get("Scope", [])),
        details=[
            ChangeDetail(
                target_attribute=d.get("Target", {}).get("Attribute"),
                target_name=d.get("Target", {}).get("Name"),
                requires_recreation=d.get("Target", {}).get("RequiresRecreation"),
                causing_entity=d.get("CausingEntity"),
                change_source=d.get("ChangeSource"),
                evaluation=d.get("Evaluation"),
            )
            for d in rc.get("Details", [])
        ],
    )


def _parse_event(event: dict) -> StackEvent:
    return StackEvent(
        event_id=event["EventId"],
        stack_name=event["StackName"],
        logical_id=event.get("LogicalResourceId", ""),
        physical_id=event.get("PhysicalResourceId"),
        resource_type=event.get("ResourceType", ""),
        status=event.get("ResourceStatus", ""),
        status_reason=event.get("ResourceStatusReason"),
        timestamp=event["Timestamp"],
        client_token=event.get("ClientRequestToken"),
    )


class CloudFormationClient:
    """Wraps boto3 CloudFormation calls and returns stackdeploy dataclasses."""

    def __init__(self, region: str | None = None):
        self._client = boto3.client("cloudformation", **({"region_name": region} if region else {}))

    def validate_template(self, template_body: str) -> None:
        """Ask CloudFormation to validate a template body. Raises ClientError if invalid."""
        self._client.validate_template(TemplateBody=template_body)

    def create_change_set(
        self,
        stack_name: str,
        template_body: str,
        parameters: list[dict[str, str]],
        change_set_name: str,
        client_token: str,
        description: str,
        change_set_type: str,
    ) -> str:
        """Create a change set and return its id."""
        response = self._client.create_change_set(
            StackName=stack_name,
            TemplateBody=template_body,
            Parameters=parameters,
            ChangeSetName=change_set_name,
            ClientToken=client_token,
            Description=description,
            ChangeSetType=change_set_type,
        )
        return response["Id"]

    def describe_change_set(self, change_set_id: str) -> ChangeSetDescription:
        """Describe a change set, following NextToken until all changes are read."""
        changes: list[ResourceChange] = []
        next_token = None

        while True:
            kwargs: dict = {"ChangeSetName": change_set_id}
            if next_token:
                kwargs["NextToken"] = next_token

            resp = self._client.describe_change_set(**kwargs)

            changes.extend(
                _parse_resource_change(c)
                for c in resp.get("Changes", [])
                if c.get("Type", "Resource") == "Resource"
            )

            next_token = resp.get("NextToken")
            if not next_token:
                break

        return ChangeSetDescription(
            change_set_id=resp.get("ChangeSetId", change_set_id),
            status=ChangeSetStatus(resp["Status"]),
            status_reason=resp.get("StatusReason"),
            execution_status=resp.get("ExecutionStatus"),
            changes=changes,
        )

    def execute_change_set(self, change_set_id: str, client_token: str) -> None:
        """Start applying a change set. Does not wait for the stack to converge."""
        self._client.execute_change_set(
            ChangeSetName=change_set_id,
            ClientRequestToken=client_token,
        )

    def delete_change_set(self, change_set_id: str) -> None:
        """Delete a change set that will not be executed."""
        self._client.delete_change_set(ChangeSetName=change_set_id)

    def describe_stacks(self, stack_name: str) -> list[Stack]:
        """Return the stacks matching a name. A missing stack yields an empty list."""
        try:
            resp = self._client.describe_stacks(StackName=stack_name)
        except ClientError as e:
            if _is_missing_stack(e):
                return []
            raise
        return [_parse_stack(s) for s in resp["Stacks"]]

    def describe_stack_events(self, stack_name: str, next_token: str | None = None) -> EventPage:
        """Fetch one page of stack events, newest first."""
        kwargs: dict = {"StackName": stack_name}
        if next_token:
            kwargs["NextToken"] = next_token

        resp = self._client.describe_stack_events(**kwargs)

        return EventPage(
            events=[_parse_event(e) for e in resp["StackEvents"]],
            next_token=resp.get("NextToken"),
        )
