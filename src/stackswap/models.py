"""Core data models for hotswap change classification."""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, ClassVar

ICON = "✨"

ApplyAction = Callable[[], Awaitable[None]]

# Type tag of candidates that stand for a top-level template section such as Outputs.
TEMPLATE_SECTION_TYPE = "AWS::CloudFormation::TemplateSection"


class HotswapMode(StrEnum):
    """How a deployment treats changes that cannot be hotswapped."""

    # Apply what can be hotswapped, then run a full stack update if anything could not be.
    FALL_BACK = "fall-back"
    # Apply what can be hotswapped and only report the rest.
    HOTSWAP_ONLY = "hotswap-only"
    # Skip hotswapping and go straight to a full stack update.
    FULL_DEPLOYMENT = "full-deployment"


class ChangeKind(StrEnum):
    """How a single property changed between two templates."""

    ADDED = "ADDED"
    REMOVED = "REMOVED"
    MODIFIED = "MODIFIED"


@dataclass(frozen=True)
class ResourceSnapshot:
    """A resource as declared in one version of a template."""

    type: str
    properties: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PropertyDifference:
    """The before and after values of one resource property."""

    old_value: Any
    new_value: Any
    kind: ChangeKind


PropDiffs = Mapping[str, PropertyDifference]


@dataclass(frozen=True)
class ChangeCandidate:
    """A pending change to one resource that may be hotswappable.

    ``old_value`` is None for resources created by the deployment and
    ``new_value`` is None for resources it destroys.
    """

    logical_id: str
    old_value: ResourceSnapshot | None
    new_value: ResourceSnapshot | None
    property_updates: PropDiffs

    @property
    def resource_type(self) -> str:
        snapshot = self.new_value if self.new_value is not None else self.old_value
        return snapshot.type if snapshot is not None else ""

    @property
    def new_properties(self) -> Mapping[str, Any]:
        return self.new_value.properties if self.new_value is not None else {}


@dataclass(frozen=True)
class HotswappableChange:
    """A resource change that can be applied directly through the service API.

    ``service`` names the AWS service being called and is used to tag the
    user agent of those calls.
    """

    hotswappable: ClassVar[bool] = True

    logical_id: str
    resource_type: str
    props_changed: list[str]
    service: str
    resource_names: list[str]
    apply: ApplyAction


@dataclass(frozen=True)
class NonHotswappableChange:
    """A resource change that needs a full stack update.

    When ``reason`` is not set, ``display_reason`` states that the properties
    in ``rejected_changes`` are not hotswappable. ``hotswap_only_visible``
    controls listing in hotswap-only mode and has no effect in fall-back mode.
    """

    hotswappable: ClassVar[bool] = False

    resource_type: str
    logical_id: str
    rejected_changes: list[str]
    reason: str | None = None
    hotswap_only_visible: bool = True

    @property
    def display_reason(self) -> str:
        return self.reason or rejected_properties_reason(self.rejected_changes)


def rejected_properties_reason(names: list[str]) -> str:
    return f"resource properties '{','.join(names)}' are not hotswappable on this resource type"


Verdict = HotswappableChange | NonHotswappableChange

ChangeHotswapResult = list[Verdict]


@dataclass(frozen=True)
class ClassifiedResourceChanges:
    """Verdicts for a whole diff, split by outcome, in evaluation order."""

    hotswappable_changes: list[HotswappableChange]
    non_hotswappable_changes: list[NonHotswappableChange]

    @property
    def all_changes(self) -> list[Verdict]:
        return [*self.hotswappable_changes, *self.non_hotswappable_changes]


@dataclass(frozen=True)
class ApplyOutcome:
    """Result of running one hotswappable change's apply action."""

    logical_id: str
    resource_type: str
    resource_names: list[str]
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class HotswapDeploymentResult:
    """Everything a deployment run did, for reporting to the operator."""

    mode: HotswapMode
    outcomes: list[ApplyOutcome] = field(default_factory=list)
    non_hotswappable_changes: list[NonHotswappableChange] = field(default_factory=list)
    full_deployment_ran: bool = False

    @property
    def hotswapped(self) -> list[ApplyOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failed(self) -> list[ApplyOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    @property
    def outcomes_by_resource(self) -> dict[str, ApplyOutcome]:
        return {o.logical_id: o for o in self.outcomes}

    @property
    def has_failures(self) -> bool:
        return any(not o.succeeded for o in self.outcomes)

    def failure_summary(self) -> str | None:
        """Describe failed applies, or return None if every apply succeeded."""
        failed = self.failed
        if not failed:
            return None
        lines = [f"{len(failed)} of {len(self.outcomes)} hotswap operations failed:"]
        lines.extend(f"  {o.logical_id} ({o.resource_type}): {o.error}" for o in failed)
        return "\n".join(lines)
