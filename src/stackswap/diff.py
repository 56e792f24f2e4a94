"""Builds change candidates from two versions of a CloudFormation template."""

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from stackswap.errors import TemplateError
from stackswap.models import (
    TEMPLATE_SECTION_TYPE,
    ChangeCandidate,
    ChangeKind,
    PropertyDifference,
    ResourceSnapshot,
)

# Resource attributes that never affect what is deployed.
IGNORED_ATTRIBUTES = {"Type", "Properties", "Metadata"}


def load_template(path: str | Path) -> dict:
    """Read a JSON template from disk."""
    try:
        template = json.loads(Path(path).read_text())
    except json.JSONDecodeError as e:
        raise TemplateError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(template, dict):
        raise TemplateError(f"{path} does not contain a JSON object")
    return template


def _resources(template: Mapping[str, Any]) -> Mapping[str, Mapping[str, Any]]:
    resources = template.get("Resources", {})
    if not isinstance(resources, Mapping):
        raise TemplateError("Template 'Resources' section must be an object")
    for logical_id, resource in resources.items():
        if not isinstance(resource, Mapping) or not isinstance(resource.get("Type"), str):
            raise TemplateError(f"Resource '{logical_id}' must be an object with a string 'Type'")
    return resources


def _diff_mappings(old: Mapping[str, Any], new: Mapping[str, Any]) -> dict[str, PropertyDifference]:
    diffs = {}
    for key, new_value in new.items():
        if key not in old:
            diffs[key] = PropertyDifference(None, new_value, ChangeKind.ADDED)
        elif old[key] != new_value:
            diffs[key] = PropertyDifference(old[key], new_value, ChangeKind.MODIFIED)
    for key, old_value in old.items():
        if key not in new:
            diffs[key] = PropertyDifference(old_value, None, ChangeKind.REMOVED)
    return diffs


def _snapshot(resource: Mapping[str, Any] | None) -> ResourceSnapshot | None:
    if resource is None:
        return None
    return ResourceSnapshot(type=resource["Type"], properties=dict(resource.get("Properties", {})))


def _diff_resource(
    logical_id: str,
    old: Mapping[str, Any] | None,
    new: Mapping[str, Any] | None,
) -> ChangeCandidate | None:
    old_props = (old or {}).get("Properties", {})
    new_props = (new or {}).get("Properties", {})
    updates = _diff_mappings(old_props, new_props)

    # Attributes such as DependsOn or DeletionPolicy are keyed by their own
    # name so that no property allow-list will accept them.
    old_attrs = {k: v for k, v in (old or {}).items() if k not in IGNORED_ATTRIBUTES}
    new_attrs = {k: v for k, v in (new or {}).items() if k not in IGNORED_ATTRIBUTES}
    updates.update(_diff_mappings(old_attrs, new_attrs))

    type_changed = old is not None and new is not None and old["Type"] != new["Type"]
    if old is not None and new is not None and not updates and not type_changed:
        return None

    return ChangeCandidate(
        logical_id=logical_id,
        old_value=_snapshot(old),
        new_value=_snapshot(new),
        property_updates=updates,
    )


def _section_contents(name: str, value: Any) -> Mapping[str, Any]:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return value
    # Scalar sections such as Description are keyed by their own name.
    return {name: value}


def _diff_sections(
    old_template: Mapping[str, Any], new_template: Mapping[str, Any]
) -> list[ChangeCandidate]:
    """One candidate per changed top-level section other than Resources."""
    names = [name for name in new_template if name != "Resources"]
    names.extend(name for name in old_template if name != "Resources" and name not in new_template)

    candidates = []
    for name in names:
        old = _section_contents(name, old_template.get(name))
        new = _section_contents(name, new_template.get(name))
        updates = _diff_mappings(old, new)
        if not updates:
            continue
        candidates.append(
            ChangeCandidate(
                logical_id=name,
                old_value=ResourceSnapshot(type=TEMPLATE_SECTION_TYPE, properties=dict(old)),
                new_value=ResourceSnapshot(type=TEMPLATE_SECTION_TYPE, properties=dict(new)),
                property_updates=updates,
            )
        )
    return candidates


def diff_templates(
    old_template: Mapping[str, Any], new_template: Mapping[str, Any]
) -> list[ChangeCandidate]:
    """Compare two templates.

    Candidates follow the new template's resource order, followed by
    removed resources in the old template's order. Changes to any other
    top-level section, such as Outputs or Parameters, come last with one
    candidate per section.
    """
    old_resources = _resources(old_template)
    new_resources = _resources(new_template)

    candidates = []
    for logical_id, new in new_resources.items():
        candidate = _diff_resource(logical_id, old_resources.get(logical_id), new)
        if candidate is not None:
            candidates.append(candidate)
    for logical_id, old in old_resources.items():
        if logical_id not in new_resources:
            candidates.append(_diff_resource(logical_id, old, None))
    candidates.extend(_diff_sections(old_template, new_template))
    return candidates
