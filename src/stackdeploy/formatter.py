"""Renderers for deploy progress and results."""

import json
from dataclasses import asdict

from rich.console import Console
from rich.table import Table
from rich.text import Text

from stackdeploy.models import ChangeSet, DeployResult, ResourceChange, Stack, StackEvent
from stackdeploy.sink import ProgressSink

TIMESTAMP_WIDTH = 30
LOGICAL_ID_WIDTH = 40
STATUS_WIDTH = 40

ACTION_COLORS = {
    "Add": "green",
    "Modify": "yellow",
    "Remove": "red",
    "Import": "cyan",
    "Dynamic": "magenta",
}


def _status_style(status: str) -> str:
    if status.endswith("IN_PROGRESS"):
        return "yellow"
    if "FAILED" in status or "ROLLBACK" in status:
        return "red"
    if status.endswith("COMPLETE"):
        return "green"
    return "default"


def _describe_details(change: ResourceChange) -> str:
    lines = []
    for d in change.details:
        target = " - ".join(p for p in (d.target_attribute, d.target_name) if p)
        line = f"{target} (recreate: {d.requires_recreation})"
        if d.causing_entity:
            line += f" caused by {d.causing_entity}"
        if d.change_source:
            line += f" [{d.change_source}]"
        lines.append(line)
    return "\n".join(lines)


def changes_table(changes: list[ResourceChange]) -> Table:
    """Build a table of proposed resource changes."""
    table = Table(title="Change Set Changes")
    table.add_column("Action")
    table.add_column("Logical ID")
    table.add_column("Physical ID")
    table.add_column("Type")
    table.add_column("Replacement")
    table.add_column("Details")

    for change in changes:
        color = ACTION_COLORS.get(change.action, "default")
        table.add_row(
            Text(change.action, style=color),
            Text(change.logical_id),
            Text(change.physical_id or ""),
            Text(change.resource_type),
            Text(change.replacement or ""),
            Text(_describe_details(change)),
        )
    return table


def outputs_table(outputs: dict[str, str]) -> Table:
    table = Table(title="Stack Outputs")
    table.add_column("Output Name")
    table.add_column("Value")
    for key, value in outputs.items():
        table.add_row(Text(key), Text(value))
    return table


def format_event(event: StackEvent) -> Text:
    """One line of the event timeline, reason appended once a resource settles."""
    line = Text()
    line.append(str(event.timestamp).ljust(TIMESTAMP_WIDTH) + " ")
    line.append(event.logical_id.ljust(LOGICAL_ID_WIDTH) + " ")
    line.append(event.status.ljust(STATUS_WIDTH) + " ", style=_status_style(event.status))
    if event.status_reason and not event.status.endswith("IN_PROGRESS"):
        line.append(event.status_reason)
    return line


def format_json(result: DeployResult) -> str:
    """Format a deploy result as JSON."""
    return json.dumps(asdict(result), indent=2, default=str)


class ConsoleSink(ProgressSink):
    """Renders deploy progress to a Rich console as it happens."""

    def __init__(self, console: Console | None = None):
        self._console = console or Console()
        self._header_printed = False

    def template_validated(self, template_path: str) -> None:
        self._console.print(Text(f"Valid template file: {template_path}"))

    def change_set_created(self, change_set: ChangeSet) -> None:
        self._console.print(
            Text(
                f"Waiting for the {change_set.type.value} change set "
                f"({change_set.change_set_id}) to be reviewed..."
            )
        )

    def no_changes(self, stack_name: str, reason: str | None) -> None:
        self._console.print(Text(f"No changes required for {stack_name}", style="bold"))

    def changes_proposed(self, change_set: ChangeSet, changes: list[ResourceChange]) -> None:
        self._console.print(changes_table(changes))

    def execution_started(self, change_set: ChangeSet) -> None:
        self._console.print("Executing change set...")
        self._header_printed = False

    def event_observed(self, event: StackEvent) -> None:
        if not self._header_printed:
            self._console.print(
                f"{'Timestamp'.ljust(TIMESTAMP_WIDTH)} "
                f"{'Logical Resource Id'.ljust(LOGICAL_ID_WIDTH)} "
                f"{'Status'.ljust(STATUS_WIDTH)}",
                style="bold",
            )
            self._console.print(
                f"{'-' * TIMESTAMP_WIDTH} {'-' * LOGICAL_ID_WIDTH} {'-' * STATUS_WIDTH}"
            )
            self._header_printed = True
        self._console.print(format_event(event))

    def stack_finished(self, stack: Stack, success: bool) -> None:
        if success:
            self._console.print(Text(f"Stack finished updating: {stack.status}", style="green"))
        else:
            reason = f" ({stack.status_reason})" if stack.status_reason else ""
            self._console.print(
                Text(f"Stack failed to update: {stack.status}{reason}", style="red")
            )

    def outputs_ready(self, outputs: dict[str, str]) -> None:
        self._console.print(outputs_table(outputs))
