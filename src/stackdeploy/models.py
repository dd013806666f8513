"""Core data models for CloudFormation change-set deployments."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class ChangeSetType(StrEnum):
    """Whether a change set creates a new stack or updates an existing one."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"


class ChangeSetStatus(StrEnum):
    """Lifecycle status of a change set."""

    CREATE_PENDING = "CREATE_PENDING"
    CREATE_IN_PROGRESS = "CREATE_IN_PROGRESS"
    CREATE_COMPLETE = "CREATE_COMPLETE"
    DELETE_PENDING = "DELETE_PENDING"
    DELETE_IN_PROGRESS = "DELETE_IN_PROGRESS"
    DELETE_COMPLETE = "DELETE_COMPLETE"
    DELETE_FAILED = "DELETE_FAILED"
    FAILED = "FAILED"


class CreationOutcome(StrEnum):
    """How change set creation ended."""

    READY = "READY"
    NO_CHANGES = "NO_CHANGES"
    FAILED = "FAILED"


@dataclass(frozen=True)
class StackOutput:
    """A single declared stack output."""

    key: str
    value: str
    description: str | None = None


@dataclass(frozen=True)
class Stack:
    """Current state of a deployed stack."""

    name: str
    stack_id: str
    status: str
    status_reason: str | None = None
    outputs: list[StackOutput] = field(default_factory=list)


@dataclass(frozen=True)
class ChangeDetail:
    """One reason a resource is being changed."""

    target_attribute: str | None
    target_name: str | None
    requires_recreation: str | None
    causing_entity: str | None
    change_source: str | None
    evaluation: str | None = None


@dataclass(frozen=True)
class ResourceChange:
    """A resource the change set will add, modify, remove or import."""

    action: str
    logical_id: str
    physical_id: str | None
    resource_type: str
    replacement: str | None
    scope: list[str] = field(default_factory=list)
    details: list[ChangeDetail] = field(default_factory=list)


@dataclass(frozen=True)
class ChangeSetDescription:
    """A describe_change_set response with all pages of changes merged."""

    change_set_id: str
    status: ChangeSetStatus
    status_reason: str | None
    execution_status: str | None
    changes: list[ResourceChange]


@dataclass(frozen=True)
class ChangeSet:
    """A proposed change set and the stack it was computed against."""

    change_set_id: str
    name: str
    stack_name: str
    type: ChangeSetType
    previous_stack: Stack | None = None


@dataclass(frozen=True)
class ChangeSetReview:
    """Result of waiting for a change set to finish being computed."""

    outcome: CreationOutcome
    status: ChangeSetStatus
    status_reason: str | None = None


@dataclass(frozen=True)
class StackEvent:
    """A single resource-level stack event."""

    event_id: str
    stack_name: str
    logical_id: str
    physical_id: str | None
    resource_type: str
    status: str
    status_reason: str | None
    timestamp: datetime
    client_token: str | None = None


@dataclass(frozen=True)
class EventPage:
    """One page of stack events, newest first as returned by the service."""

    events: list[StackEvent]
    next_token: str | None = None


@dataclass(frozen=True)
class DeployResult:
    """Outcome of a single deploy invocation."""

    stack_name: str
    success: bool
    status: str
    reason: str | None = None
    outputs: dict[str, str] | None = None
    change_set_id: str | None = None
    change_set_type: ChangeSetType | None = None
    changed: bool = True
