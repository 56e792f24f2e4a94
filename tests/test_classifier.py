"""Tests for change classification."""

from unittest.mock import MagicMock

import pytest

from stackswap.classifier import (
    TAGS_ONLY_REASON,
    classify_changes,
    classify_resource_changes,
    report_non_hotswappable_change,
    report_non_hotswappable_resource,
)
from stackswap.models import (
    ChangeCandidate,
    HotswappableChange,
    NonHotswappableChange,
    ResourceSnapshot,
)
from stackswap.policies import PolicyContext, PolicyRegistry, ResourcePolicy
from tests.conftest import make_candidate


class FakeQueuePolicy(ResourcePolicy):
    resource_type = "AWS::SQS::Queue"
    service = "sqs-queue"
    hotswappable_properties = frozenset({"VisibilityTimeout"})

    def build_apply(self, candidate, classified, context):
        async def apply():
            return None

        return apply


@pytest.fixture
def registry():
    return PolicyRegistry([FakeQueuePolicy()])


@pytest.fixture
def context():
    return PolicyContext(client=MagicMock())


def test_classify_changes_partitions_all_properties():
    candidate = make_candidate(
        changes={
            "Code": ({"ZipFile": "a"}, {"ZipFile": "b"}),
            "Runtime": ("python3.11", "python3.12"),
            "Description": (None, "new"),
        }
    )

    classified = classify_changes(candidate, ["Code", "Description"])

    assert set(classified.hotswappable_props) == {"Code", "Description"}
    assert set(classified.non_hotswappable_props) == {"Runtime"}
    assert set(classified.hotswappable_props) | set(classified.non_hotswappable_props) == set(
        candidate.property_updates
    )
    assert not set(classified.hotswappable_props) & set(classified.non_hotswappable_props)
    assert classified.names_of_hotswappable_props == ["Code", "Description"]


def test_classify_changes_empty_allow_list():
    candidate = make_candidate()

    classified = classify_changes(candidate, [])

    assert classified.hotswappable_props == {}
    assert list(classified.non_hotswappable_props) == ["Code"]


def test_report_tags_only_change():
    candidate = make_candidate(changes={"Tags": ([], [{"Key": "a", "Value": "b"}])})
    ret = []

    classify_changes(candidate, ["Code"]).report_non_hotswappable_property_changes(ret)

    assert len(ret) == 1
    assert ret[0].reason == TAGS_ONLY_REASON == "Tags are not hotswappable"
    assert ret[0].rejected_changes == ["Tags"]


def test_report_names_every_rejected_property():
    candidate = make_candidate(
        changes={
            "Tags": ([], [{"Key": "a", "Value": "b"}]),
            "Runtime": ("python3.11", "python3.12"),
        }
    )
    ret = []

    classify_changes(candidate, []).report_non_hotswappable_property_changes(ret)

    assert ret[0].reason == (
        "resource properties 'Tags,Runtime' are not hotswappable on this resource type"
    )
    assert ret[0].logical_id == "MyFunction"
    assert ret[0].resource_type == "AWS::Lambda::Function"


def test_report_nothing_when_all_properties_hotswappable():
    ret = []

    classify_changes(make_candidate(), ["Code"]).report_non_hotswappable_property_changes(ret)

    assert ret == []


def test_report_non_hotswappable_change_defaults_to_all_properties():
    candidate = make_candidate(changes={"A": (1, 2), "B": (3, 4)}, resource_type="AWS::X::Y")
    ret = []

    report_non_hotswappable_change(ret, candidate)

    assert ret == [
        NonHotswappableChange(
            resource_type="AWS::X::Y",
            logical_id="MyFunction",
            rejected_changes=["A", "B"],
            reason=None,
            hotswap_only_visible=True,
        )
    ]


def test_report_non_hotswappable_change_hidden():
    ret = []

    report_non_hotswappable_change(ret, make_candidate(), reason="hidden", hotswap_only_visible=False)

    assert ret[0].hotswap_only_visible is False
    assert ret[0].reason == "hidden"


def test_report_non_hotswappable_resource():
    candidate = make_candidate(changes={"A": (1, 2), "B": (3, 4)})

    ret = report_non_hotswappable_resource(candidate, "replaced")

    assert len(ret) == 1
    assert ret[0].rejected_changes == ["A", "B"]
    assert ret[0].reason == "replaced"
    assert ret[0].hotswap_only_visible is True


def test_partially_hotswappable_resource_reports_both(registry, context):
    candidate = make_candidate(
        logical_id="Queue",
        resource_type="AWS::SQS::Queue",
        changes={"VisibilityTimeout": (30, 60), "QueueName": ("a", "b")},
    )

    classified = classify_resource_changes([candidate], registry, context)

    assert len(classified.hotswappable_changes) == 1
    assert classified.hotswappable_changes[0].props_changed == ["VisibilityTimeout"]
    assert classified.hotswappable_changes[0].service == "sqs-queue"
    assert len(classified.non_hotswappable_changes) == 1
    assert classified.non_hotswappable_changes[0].rejected_changes == ["QueueName"]


def test_unsupported_resource_type_rejected(registry, context):
    candidate = make_candidate(logical_id="Topic", resource_type="AWS::SNS::Topic")

    classified = classify_resource_changes([candidate], registry, context)

    assert classified.hotswappable_changes == []
    assert classified.non_hotswappable_changes[0].reason == (
        "resource type 'AWS::SNS::Topic' is not supported for hotswapping"
    )


def test_type_change_rejected_outright(registry, context):
    candidate = make_candidate(
        logical_id="Queue",
        resource_type="AWS::SQS::Queue",
        old_type="AWS::SNS::Topic",
        changes={"VisibilityTimeout": (30, 60)},
    )

    classified = classify_resource_changes([candidate], registry, context)

    assert classified.hotswappable_changes == []
    assert "must be replaced" in classified.non_hotswappable_changes[0].reason


def test_created_and_destroyed_resources_rejected(registry, context):
    created = ChangeCandidate(
        logical_id="NewQueue",
        old_value=None,
        new_value=ResourceSnapshot(type="AWS::SQS::Queue"),
        property_updates={},
    )
    destroyed = ChangeCandidate(
        logical_id="OldQueue",
        old_value=ResourceSnapshot(type="AWS::SQS::Queue"),
        new_value=None,
        property_updates={},
    )

    classified = classify_resource_changes([created, destroyed], registry, context)

    reasons = [c.reason for c in classified.non_hotswappable_changes]
    assert reasons == [
        "resource 'NewQueue' was created by this deployment",
        "resource 'OldQueue' was destroyed by this deployment",
    ]


def test_aggregation_preserves_evaluation_order(registry, context):
    candidates = [
        make_candidate(
            logical_id=f"Queue{i}",
            resource_type="AWS::SQS::Queue",
            changes={"VisibilityTimeout": (30, 60)},
        )
        for i in range(3)
    ]

    classified = classify_resource_changes(candidates, registry, context)

    assert [c.logical_id for c in classified.hotswappable_changes] == ["Queue0", "Queue1", "Queue2"]
    assert all(isinstance(c, HotswappableChange) for c in classified.all_changes)
