"""Classification of resource changes into hotswappable and non-hotswappable verdicts."""

import logging
from collections.abc import Collection, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from stackswap.models import (
    TEMPLATE_SECTION_TYPE,
    ChangeCandidate,
    ChangeHotswapResult,
    ClassifiedResourceChanges,
    HotswappableChange,
    NonHotswappableChange,
    PropDiffs,
    rejected_properties_reason,
)

if TYPE_CHECKING:
    from stackswap.policies import PolicyContext, PolicyRegistry

logger = logging.getLogger(__name__)

TAGS_ONLY_REASON = "Tags are not hotswappable"


@dataclass(frozen=True)
class ClassifiedChanges:
    """A change candidate's property updates split by hotswappability."""

    change: ChangeCandidate
    hotswappable_props: PropDiffs
    non_hotswappable_props: PropDiffs

    @property
    def names_of_hotswappable_props(self) -> list[str]:
        return list(self.hotswappable_props)

    def report_non_hotswappable_property_changes(self, ret: ChangeHotswapResult) -> None:
        """Append a verdict for the rejected properties, if there are any."""
        names = list(self.non_hotswappable_props)
        if not names:
            return
        reason = TAGS_ONLY_REASON if names == ["Tags"] else rejected_properties_reason(names)
        report_non_hotswappable_change(ret, self.change, self.non_hotswappable_props, reason)


def classify_changes(
    candidate: ChangeCandidate, hotswappable_prop_names: Collection[str]
) -> ClassifiedChanges:
    """Partition a candidate's property updates against an allow-list."""
    hotswappable_props = {}
    non_hotswappable_props = {}

    for name, prop_diff in candidate.property_updates.items():
        if name in hotswappable_prop_names:
            hotswappable_props[name] = prop_diff
        else:
            non_hotswappable_props[name] = prop_diff

    return ClassifiedChanges(candidate, hotswappable_props, non_hotswappable_props)


def report_non_hotswappable_change(
    ret: ChangeHotswapResult,
    change: ChangeCandidate,
    non_hotswappable_props: PropDiffs | None = None,
    reason: str | None = None,
    hotswap_only_visible: bool = True,
) -> None:
    """Append a verdict rejecting some (by default all) of a candidate's properties."""
    rejected = non_hotswappable_props if non_hotswappable_props is not None else change.property_updates
    ret.append(
        NonHotswappableChange(
            resource_type=change.resource_type,
            logical_id=change.logical_id,
            rejected_changes=list(rejected),
            reason=reason,
            hotswap_only_visible=hotswap_only_visible is not False,
        )
    )


def report_non_hotswappable_resource(
    change: ChangeCandidate, reason: str | None = None
) -> ChangeHotswapResult:
    """Reject a resource outright, covering every property that changed."""
    return [
        NonHotswappableChange(
            resource_type=change.resource_type,
            logical_id=change.logical_id,
            rejected_changes=list(change.property_updates),
            reason=reason,
        )
    ]


def _structural_rejection(candidate: ChangeCandidate) -> str | None:
    """Reasons a resource can never be hotswapped, whatever its policy says."""
    if candidate.resource_type == TEMPLATE_SECTION_TYPE:
        return f"changes to {candidate.logical_id} are not hotswappable"
    if candidate.old_value is None:
        return f"resource '{candidate.logical_id}' was created by this deployment"
    if candidate.new_value is None:
        return f"resource '{candidate.logical_id}' was destroyed by this deployment"
    if candidate.old_value.type != candidate.new_value.type:
        return (
            f"resource '{candidate.logical_id}' changed type from "
            f"'{candidate.old_value.type}' to '{candidate.new_value.type}' and must be replaced"
        )
    return None


def evaluate_candidate(
    candidate: ChangeCandidate,
    registry: "PolicyRegistry",
    context: "PolicyContext",
) -> ChangeHotswapResult:
    """Produce the verdicts for a single change candidate."""
    reason = _structural_rejection(candidate)
    if reason is not None:
        logger.debug("Rejecting %s: %s", candidate.logical_id, reason)
        return report_non_hotswappable_resource(candidate, reason)

    policy = registry.get(candidate.resource_type)
    if policy is None:
        return report_non_hotswappable_resource(
            candidate,
            f"resource type '{candidate.resource_type}' is not supported for hotswapping",
        )

    logger.debug("Evaluating %s with %s", candidate.logical_id, type(policy).__name__)
    return policy.evaluate(candidate, context)


def classify_resource_changes(
    candidates: Iterable[ChangeCandidate],
    registry: "PolicyRegistry",
    context: "PolicyContext",
) -> ClassifiedResourceChanges:
    """Evaluate every candidate and collect the verdicts in evaluation order."""
    hotswappable: list[HotswappableChange] = []
    non_hotswappable: list[NonHotswappableChange] = []

    for candidate in candidates:
        for verdict in evaluate_candidate(candidate, registry, context):
            if isinstance(verdict, HotswappableChange):
                hotswappable.append(verdict)
            elif isinstance(verdict, NonHotswappableChange):
                non_hotswappable.append(verdict)
            else:
                raise TypeError(f"Unexpected verdict type: {type(verdict).__name__}")

    logger.debug(
        "Classified %d hotswappable and %d non-hotswappable changes",
        len(hotswappable),
        len(non_hotswappable),
    )
    return ClassifiedResourceChanges(
        hotswappable_changes=hotswappable,
        non_hotswappable_changes=non_hotswappable,
    )
