"""Shared test fixtures."""

from datetime import UTC, datetime, timedelta

import boto3
import pytest
from moto import mock_aws

from stackdeploy.models import StackEvent, StackOutput
from tests.fakes import FakeCloudFormation


@pytest.fixture
def aws_credentials(monkeypatch):
    """Set dummy AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def cfn_client(aws_credentials):
    """Create a moto-mocked CloudFormation boto3 client."""
    with mock_aws():
        yield boto3.client("cloudformation", region_name="us-east-1")


@pytest.fixture
def fake_cfn():
    return FakeCloudFormation(
        outputs=[
            StackOutput("QueueUrl", "https://sqs.us-east-1.amazonaws.com/123/q"),
            StackOutput("QueueArn", "arn:aws:sqs:us-east-1:123:q"),
        ]
    )


@pytest.fixture
def template_file(tmp_path):
    path = tmp_path / "template.json"
    path.write_text(SIMPLE_TEMPLATE)
    return path


def make_event(event_id, minutes, status="CREATE_COMPLETE", logical_id="MyQueue", reason=None):
    """Build a StackEvent ``minutes`` after BASE_TIME."""
    return StackEvent(
        event_id=event_id,
        stack_name="my-stack",
        logical_id=logical_id,
        physical_id=None,
        resource_type="AWS::SQS::Queue",
        status=status,
        status_reason=reason,
        timestamp=BASE_TIME + timedelta(minutes=minutes),
    )


BASE_TIME = datetime(2026, 2, 25, 13, 0, 0, tzinfo=UTC)

SIMPLE_TEMPLATE = """{
    "AWSTemplateFormatVersion": "2010-09-09",
    "Resources": {
        "MyQueue": {
            "Type": "AWS::SQS::Queue",
            "Properties": {
                "QueueName": "my-test-queue"
            }
        }
    },
    "Outputs": {
        "QueueUrl": {"Value": {"Ref": "MyQueue"}}
    }
}"""

CHANGED_TEMPLATE = SIMPLE_TEMPLATE.replace("my-test-queue", "my-renamed-queue")
