"""Tests for output formatters and sinks."""

import json
import logging

from rich.console import Console

from stackdeploy.formatter import ConsoleSink, format_event, format_json
from stackdeploy.models import (
    ChangeDetail,
    ChangeSet,
    ChangeSetType,
    DeployResult,
    ResourceChange,
    Stack,
)
from stackdeploy.sink import LoggingSink, ProgressSink
from tests.conftest import make_event


def _console():
    return Console(record=True, width=200)


def _change_set():
    return ChangeSet(
        change_set_id="cs-arn",
        name="ChangeSet-42",
        stack_name="my-stack",
        type=ChangeSetType.UPDATE,
    )


def _change():
    return ResourceChange(
        action="Modify",
        logical_id="MyQueue",
        physical_id="https://sqs/q",
        resource_type="AWS::SQS::Queue",
        replacement="True",
        scope=["Properties"],
        details=[
            ChangeDetail(
                target_attribute="Properties",
                target_name="QueueName",
                requires_recreation="Always",
                causing_entity=None,
                change_source="DirectModification",
            )
        ],
    )


def test_format_json():
    result = DeployResult(
        stack_name="my-stack",
        success=True,
        status="UPDATE_COMPLETE",
        outputs={"Url": "http://x"},
        change_set_type=ChangeSetType.UPDATE,
    )

    data = json.loads(format_json(result))

    assert data["stack_name"] == "my-stack"
    assert data["success"] is True
    assert data["outputs"] == {"Url": "http://x"}
    assert data["change_set_type"] == "UPDATE"


def test_format_event_includes_reason_only_when_settled():
    failed = format_event(make_event("E1", 1, "CREATE_FAILED", reason="Queue name taken"))
    pending = format_event(make_event("E2", 2, "CREATE_IN_PROGRESS", reason="Resource creation Initiated"))

    assert "Queue name taken" in failed.plain
    assert "Initiated" not in pending.plain


def test_console_sink_renders_changes():
    console = _console()

    ConsoleSink(console).changes_proposed(_change_set(), [_change()])

    out = console.export_text()
    assert "MyQueue" in out
    assert "Modify" in out
    assert "QueueName" in out
    assert "Always" in out


def test_console_sink_prints_event_header_once():
    console = _console()
    sink = ConsoleSink(console)

    sink.event_observed(make_event("E1", 1, "CREATE_IN_PROGRESS"))
    sink.event_observed(make_event("E2", 2, "CREATE_COMPLETE"))

    out = console.export_text()
    assert out.count("Logical Resource Id") == 1
    assert out.index("CREATE_IN_PROGRESS") < out.index("CREATE_COMPLETE")


def test_console_sink_renders_outputs_and_failure():
    console = _console()
    sink = ConsoleSink(console)

    sink.outputs_ready({"Url": "http://x"})
    sink.stack_finished(
        Stack(
            name="my-stack",
            stack_id="arn",
            status="UPDATE_ROLLBACK_COMPLETE",
            status_reason="MyQueue failed",
        ),
        success=False,
    )

    out = console.export_text()
    assert "Url" in out
    assert "http://x" in out
    assert "UPDATE_ROLLBACK_COMPLETE" in out
    assert "MyQueue failed" in out


def test_console_sink_no_changes():
    console = _console()

    ConsoleSink(console).no_changes("my-stack", "No updates are to be performed.")

    assert "No changes required for my-stack" in console.export_text()


def test_base_sink_is_silent(capsys):
    sink = ProgressSink()
    sink.changes_proposed(_change_set(), [_change()])
    sink.event_observed(make_event("E1", 1))
    sink.outputs_ready({"Url": "http://x"})

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""


def test_logging_sink_logs_failures_as_warnings(caplog):
    sink = LoggingSink()

    with caplog.at_level(logging.INFO, logger="stackdeploy.sink"):
        sink.event_observed(make_event("E1", 1, "CREATE_FAILED", reason="Queue name taken"))
        sink.stack_finished(
            Stack(name="my-stack", stack_id="arn", status="ROLLBACK_COMPLETE", status_reason="boom"),
            success=False,
        )

    assert "Queue name taken" in caplog.text
    assert any(r.levelno == logging.WARNING and "boom" in r.getMessage() for r in caplog.records)


def test_console_sink_keeps_bracketed_service_text():
    console = _console()
    sink = ConsoleSink(console)

    sink.template_validated("templates/[prod]/stack.yaml")
    sink.no_changes("my-stack[blue]", None)
    sink.stack_finished(
        Stack(
            name="my-stack",
            stack_id="arn",
            status="ROLLBACK_COMPLETE",
            status_reason="Log group [/aws/lambda/fn] already exists",
        ),
        success=False,
    )
    sink.stack_finished(
        Stack(
            name="my-stack",
            stack_id="arn",
            status="UPDATE_ROLLBACK_COMPLETE",
            status_reason="Template error: failed to satisfy constraint for keyword [pattern]",
        ),
        success=False,
    )

    out = console.export_text()
    assert "templates/[prod]/stack.yaml" in out
    assert "No changes required for my-stack[blue]" in out
    assert "Log group [/aws/lambda/fn] already exists" in out
    assert "constraint for keyword [pattern]" in out


def test_console_sink_tables_keep_bracketed_values():
    console = _console()
    sink = ConsoleSink(console)
    change = ResourceChange(
        action="Add",
        logical_id="Logs",
        physical_id="[/aws/lambda/fn]",
        resource_type="AWS::Logs::LogGroup",
        replacement=None,
        scope=[],
        details=[],
    )

    sink.changes_proposed(_change_set(), [change])
    sink.outputs_ready({"Pattern": "[bold]"})

    out = console.export_text()
    assert "[/aws/lambda/fn]" in out
    assert "[bold]" in out
