#!/usr/bin/env python3
# CUI // SP-CTI
"""Assessment scope: tailor an OSCAL Assessment Plan to a set of controls.

An ``AssessmentScope`` carries the framework identifier and the control ids
the user wants assessed. ``apply_scope`` walks every control selection in an
assessment plan and narrows it to the scope:

    /assessment-plan/local-definitions/activities/related-controls/control-selections
    /assessment-plan/local-definitions/activities/steps/reviewed-controls/control-selections
    /assessment-plan/reviewed-controls/control-selections

"Any control specified within exclude-controls must first be within a range
of explicitly included controls, via include-controls or include-all."
Exclusions are never touched here, so that rule holds on exit whenever it held
on entry.

Usage (library):
    from complyplan.plan.scope import new_scope
    scope = new_scope("example-framework", ["ac-1", "ac-2"])
    scope.apply_scope(plan, log=logger)
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional

logger = logging.getLogger(__name__)

# Namespace for properties this tool writes into plans.
TOOL_NAMESPACE = "urn:complyplan:oscal:extensions"

SKIPPED_PROP_NAME = "skipped"
SKIPPED_PROP_VALUE = "true"

PLAN_ROOT_KEY = "assessment-plan"


@dataclass(frozen=True)
class AssessmentScope:
    """Controls in scope of an assessment for one framework."""

    framework_id: str
    include_controls: FrozenSet[str] = frozenset()

    def to_dict(self) -> dict:
        return {
            "frameworkId": self.framework_id,
            "includeControls": sorted(self.include_controls),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AssessmentScope":
        return new_scope(data.get("frameworkId", ""), data.get("includeControls"))

    def apply_scope(self, plan: dict, log: Optional[logging.Logger] = None,
                    namespace: str = TOOL_NAMESPACE) -> None:
        """Alter ``plan`` in place so it only assesses this scope's controls."""
        apply_scope(plan, self, log=log, namespace=namespace)


@dataclass
class FilterResult:
    """Outcome of filtering a single control selection."""

    include_controls: List[str] = field(default_factory=list)
    became_empty: bool = False


def new_scope(framework_id: str, include_controls: Optional[Iterable[str]] = None) -> AssessmentScope:
    """Create an AssessmentScope. An empty include set keeps no controls."""
    return AssessmentScope(
        framework_id=framework_id,
        include_controls=frozenset(include_controls or ()),
    )


# ---------------------------------------------------------------------------
# Control selection filter
# ---------------------------------------------------------------------------

def filter_control_selection(selection: dict, include_set: FrozenSet[str]) -> FilterResult:
    """Narrow one ``assessed-controls`` selection to ``include_set``.

    The new include-controls are the intersection of what the selection
    originally included and the scope. A selection with include-all takes the
    scope's controls as they are: the full framework catalog is not available
    here, so the scope is trusted to name framework controls.

    include-all is always removed. An empty result removes include-controls
    entirely. exclude-controls pass through unchanged.

    Args:
        selection: The control selection dict, modified in place.
        include_set: Control ids in scope. Not modified.

    Returns:
        FilterResult with the kept control ids and whether none remain.
    """
    included_all = selection.pop("include-all", None) is not None

    kept = []
    if included_all:
        kept = [{"control-id": control_id} for control_id in sorted(include_set)]
    else:
        seen = set()
        for entry in selection.get("include-controls") or []:
            control_id = entry.get("control-id")
            if control_id in include_set and control_id not in seen:
                seen.add(control_id)
                kept.append(entry)

    if kept:
        selection["include-controls"] = kept
    else:
        selection.pop("include-controls", None)

    return FilterResult(
        include_controls=[entry["control-id"] for entry in kept],
        became_empty=not kept,
    )


# ---------------------------------------------------------------------------
# Plan walker
# ---------------------------------------------------------------------------

def _branch_label(branch: dict) -> str:
    return branch.get("title") or branch.get("uuid") or "<untitled>"


def _mark_skipped(branch: dict, namespace: str) -> None:
    """Attach the skipped prop to an activity or step, once."""
    props = branch.setdefault("props", [])
    for prop in props:
        if prop.get("name") == SKIPPED_PROP_NAME and prop.get("ns") == namespace:
            prop["value"] = SKIPPED_PROP_VALUE
            return
    props.append({
        "name": SKIPPED_PROP_NAME,
        "ns": namespace,
        "value": SKIPPED_PROP_VALUE,
    })


def _scope_branch(branch, container_key, include_set, namespace, log, stats):
    """Filter the selections under ``branch[container_key]``.

    Selections left empty are dropped. When none remain the container itself
    is removed and the branch is marked skipped.
    """
    container = branch.get(container_key)
    if not container:
        return
    selections = container.get("control-selections")
    if not selections:
        return

    kept = []
    for selection in selections:
        stats["selections"] += 1
        if not filter_control_selection(selection, include_set).became_empty:
            kept.append(selection)

    if kept:
        container["control-selections"] = kept
        return

    del branch[container_key]
    _mark_skipped(branch, namespace)
    stats["skipped"] += 1
    log.debug("Skipping %s: no controls in scope for %s",
              _branch_label(branch), container_key)


def apply_scope(
    plan: dict,
    scope: AssessmentScope,
    log: Optional[logging.Logger] = None,
    namespace: str = TOOL_NAMESPACE,
) -> None:
    """Alter the control selections of an OSCAL Assessment Plan in place.

    Args:
        plan: The ``assessment-plan`` dict, or a document wrapping it under
            the ``assessment-plan`` key.
        scope: Controls to keep.
        log: Where to log. Defaults to this module's logger.
        namespace: Namespace of the skipped prop.
    """
    log = log or logger
    assessment_plan = plan.get(PLAN_ROOT_KEY, plan)
    include_set = frozenset(scope.include_controls)
    log.debug("Found included controls: count=%d", len(include_set))

    stats: Dict[str, int] = {"selections": 0, "skipped": 0}

    local_definitions = assessment_plan.get("local-definitions") or {}
    for activity in local_definitions.get("activities") or []:
        _scope_branch(activity, "related-controls", include_set, namespace, log, stats)
        for step in activity.get("steps") or []:
            _scope_branch(step, "reviewed-controls", include_set, namespace, log, stats)

    reviewed_controls = assessment_plan.get("reviewed-controls") or {}
    for selection in reviewed_controls.get("control-selections") or []:
        stats["selections"] += 1
        filter_control_selection(selection, include_set)

    log.info("Applied scope for %s: %d control selection(s) filtered, %d branch(es) skipped",
             scope.framework_id, stats["selections"], stats["skipped"])
