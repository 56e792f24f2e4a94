"""Interface implemented by every per-resource-type hotswap policy."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from stackswap.classifier import (
    ClassifiedChanges,
    classify_changes,
    report_non_hotswappable_resource,
)
from stackswap.config import HotswapPropertyOverrides
from stackswap.models import (
    ApplyAction,
    ChangeCandidate,
    ChangeHotswapResult,
    HotswappableChange,
)


@dataclass(frozen=True)
class PolicyContext:
    """Per-deployment inputs shared, read-only, by every policy and its actions."""

    client: Any
    overrides: HotswapPropertyOverrides = field(default_factory=HotswapPropertyOverrides)


def contains_intrinsic(value: Any) -> bool:
    """True if ``value`` holds a ``Ref`` or ``Fn::`` expression anywhere inside it."""
    if isinstance(value, Mapping):
        if any(key == "Ref" or key.startswith("Fn::") for key in value):
            return True
        return any(contains_intrinsic(v) for v in value.values())
    if isinstance(value, list | tuple):
        return any(contains_intrinsic(v) for v in value)
    return False


class ResourcePolicy(ABC):
    """Decides which changes to one resource type can be hotswapped, and how.

    Subclasses declare the resource type, the service they call and the
    properties that are safe to update in place, and build the action that
    performs the update.
    """

    resource_type: str
    service: str
    hotswappable_properties: frozenset[str] = frozenset()

    def allowed_properties(self) -> frozenset[str]:
        return self.hotswappable_properties

    def rejection_reason(self, candidate: ChangeCandidate) -> str | None:
        """Return a reason when the whole resource must go through a full deployment."""
        for name in candidate.property_updates:
            if name not in self.allowed_properties():
                continue
            if contains_intrinsic(candidate.new_properties.get(name)):
                return (
                    f"property '{name}' of resource '{candidate.logical_id}' references "
                    "values that can only be resolved by a full deployment"
                )
        return None

    def resource_names(self, candidate: ChangeCandidate) -> list[str]:
        return [f"{self.resource_type} '{candidate.logical_id}'"]

    @abstractmethod
    def build_apply(
        self, candidate: ChangeCandidate, classified: ClassifiedChanges, context: PolicyContext
    ) -> ApplyAction:
        """Return a coroutine function that applies the accepted properties."""

    def evaluate(self, candidate: ChangeCandidate, context: PolicyContext) -> ChangeHotswapResult:
        reason = self.rejection_reason(candidate)
        if reason is not None:
            return report_non_hotswappable_resource(candidate, reason)

        classified = classify_changes(candidate, self.allowed_properties())
        ret: ChangeHotswapResult = []
        classified.report_non_hotswappable_property_changes(ret)

        if classified.hotswappable_props:
            ret.append(
                HotswappableChange(
                    logical_id=candidate.logical_id,
                    resource_type=candidate.resource_type,
                    props_changed=classified.names_of_hotswappable_props,
                    service=self.service,
                    resource_names=self.resource_names(candidate),
                    apply=self.build_apply(candidate, classified, context),
                )
            )
        return ret


class PolicyRegistry:
    """Lookup of hotswap policies keyed by resource type."""

    def __init__(self, policies: list[ResourcePolicy] | None = None):
        self._policies: dict[str, ResourcePolicy] = {}
        for policy in policies or []:
            self.register(policy)

    def register(self, policy: ResourcePolicy) -> None:
        if policy.resource_type in self._policies:
            raise ValueError(f"A policy for {policy.resource_type} is already registered")
        self._policies[policy.resource_type] = policy

    def get(self, resource_type: str) -> ResourcePolicy | None:
        return self._policies.get(resource_type)

    def __contains__(self, resource_type: str) -> bool:
        return resource_type in self._policies

    @property
    def resource_types(self) -> list[str]:
        return sorted(self._policies)
