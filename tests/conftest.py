"""Shared test fixtures."""

import boto3
import pytest
from moto import mock_aws

from stackswap.models import ChangeCandidate, ChangeKind, PropertyDifference, ResourceSnapshot


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


def make_candidate(
    logical_id="MyFunction",
    resource_type="AWS::Lambda::Function",
    changes=None,
    new_properties=None,
    old_type=None,
):
    """Build a ChangeCandidate whose property updates are ``changes`` (name -> (old, new))."""
    changes = changes if changes is not None else {"Code": ({"ZipFile": "a"}, {"ZipFile": "b"})}
    old_props = {name: old for name, (old, _new) in changes.items() if old is not None}
    new_props = {name: new for name, (_old, new) in changes.items() if new is not None}
    if new_properties is not None:
        new_props = {**new_properties, **new_props}
    updates = {}
    for name, (old, new) in changes.items():
        if old is None:
            kind = ChangeKind.ADDED
        elif new is None:
            kind = ChangeKind.REMOVED
        else:
            kind = ChangeKind.MODIFIED
        updates[name] = PropertyDifference(old, new, kind)
    return ChangeCandidate(
        logical_id=logical_id,
        old_value=ResourceSnapshot(type=old_type or resource_type, properties=old_props),
        new_value=ResourceSnapshot(type=resource_type, properties=new_props),
        property_updates=updates,
    )


SIMPLE_TEMPLATE = """{
    "AWSTemplateFormatVersion": "2010-09-09",
    "Resources": {
        "MyQueue": {
            "Type": "AWS::SQS::Queue",
            "Properties": {
                "QueueName": "my-test-queue"
            }
        }
    }
}"""

UPDATED_TEMPLATE = """{
    "AWSTemplateFormatVersion": "2010-09-09",
    "Resources": {
        "MyQueue": {
            "Type": "AWS::SQS::Queue",
            "Properties": {
                "QueueName": "my-test-queue",
                "VisibilityTimeout": 60
            }
        }
    }
}"""
