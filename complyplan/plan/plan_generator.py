#!/usr/bin/env python3
# CUI // SP-CTI
"""Build an OSCAL 1.1.3 Assessment Plan from component definitions.

For a framework id the generator collects every control implementation that
applies to it and produces:
  - reviewed-controls including every implemented control
  - one activity per rule, related to the controls that rule verifies, with
    one step per check of that rule
  - assessment subjects for each contributing component
  - a single task associating all activities with those subjects

The result is the unfiltered plan; ``complyplan.plan.scope`` tailors it.
"""

import logging
import uuid

from complyplan.compat.datetime_utils import oscal_timestamp
from complyplan.compliance.component_definitions import (
    component_rule_sets,
    framework_control_implementations,
    requirement_rule_ids,
)
from complyplan.errors import PlanGenerationError
from complyplan.plan.scope import PLAN_ROOT_KEY, TOOL_NAMESPACE

logger = logging.getLogger(__name__)

OSCAL_VERSION = "1.1.3"
PLAN_VERSION = "1.0.0"
FRAMEWORK_ID_PROP = "framework-id"
IMPORT_SSP_PLACEHOLDER = "#system-security-plan-placeholder"


def _generate_uuid():
    """Generate a UUID4 string for OSCAL identifiers."""
    return str(uuid.uuid4())


def _include_controls(control_ids):
    return {
        "control-selections": [
            {"include-controls": [{"control-id": cid} for cid in control_ids]}
        ]
    }


def _build_activity(rule, control_ids):
    steps = []
    for check in rule["checks"]:
        steps.append({
            "uuid": _generate_uuid(),
            "title": check["check_id"],
            "description": check["description"],
            "reviewed-controls": _include_controls(control_ids),
        })

    activity = {
        "uuid": _generate_uuid(),
        "title": rule["rule_id"],
        "description": rule["description"],
        "props": [
            {"name": "method", "value": "TEST"},
        ],
        "related-controls": _include_controls(control_ids),
    }
    if steps:
        activity["steps"] = steps
    return activity


def generate_assessment_plan(component_definitions, framework_id, title=None,
                             import_ssp_href=IMPORT_SSP_PLACEHOLDER,
                             version=PLAN_VERSION, namespace=TOOL_NAMESPACE):
    """Generate an assessment plan document for ``framework_id``.

    Args:
        component_definitions: Inner ``component-definition`` dicts.
        framework_id: Framework whose control implementations are assessed.
        title: Plan title. Defaults to one naming the framework.
        import_ssp_href: Reference to the system security plan.
        version: Plan document version.
        namespace: Namespace of the framework-id metadata prop.

    Returns:
        Dict ``{"assessment-plan": {...}}``.

    Raises:
        PlanGenerationError: no component implements controls for the framework.
    """
    control_ids = []
    rule_controls = {}
    rules = {}
    subject_uuids = []

    for component, implementation in framework_control_implementations(
        component_definitions, framework_id
    ):
        rule_sets = component_rule_sets(component)
        component_uuid = component.get("uuid")
        if component_uuid and component_uuid not in subject_uuids:
            subject_uuids.append(component_uuid)

        for requirement in implementation.get("implemented-requirements") or []:
            control_id = requirement.get("control-id")
            if not control_id:
                continue
            if control_id not in control_ids:
                control_ids.append(control_id)

            for rule_id in requirement_rule_ids(requirement):
                rule = rule_sets.get(rule_id)
                if rule is None:
                    logger.debug("Rule %s for %s not defined by component %s",
                                 rule_id, control_id, component.get("title"))
                    rule = {"rule_id": rule_id, "description": rule_id, "checks": []}
                if rule_id not in rules or (rule["checks"] and not rules[rule_id]["checks"]):
                    rules[rule_id] = rule
                linked = rule_controls.setdefault(rule_id, [])
                if control_id not in linked:
                    linked.append(control_id)

    if not control_ids:
        raise PlanGenerationError(
            f"No control implementations found for framework '{framework_id}'"
        )

    activities = [_build_activity(rules[rule_id], rule_controls[rule_id]) for rule_id in rules]

    plan = {
        "uuid": _generate_uuid(),
        "metadata": {
            "title": title or f"Assessment Plan for {framework_id}",
            "last-modified": oscal_timestamp(),
            "version": version,
            "oscal-version": OSCAL_VERSION,
            "props": [
                {"name": FRAMEWORK_ID_PROP, "ns": namespace, "value": framework_id},
            ],
        },
        "import-ssp": {"href": import_ssp_href},
        "reviewed-controls": _include_controls(control_ids),
    }

    if activities:
        plan["local-definitions"] = {"activities": activities}

    if subject_uuids:
        subjects = [{"subject-uuid": su, "type": "component"} for su in subject_uuids]
        plan["assessment-subjects"] = [
            {"type": "component", "include-subjects": subjects},
        ]
        if activities:
            plan["tasks"] = [{
                "uuid": _generate_uuid(),
                "type": "action",
                "title": f"Automated assessment for {framework_id}",
                "associated-activities": [
                    {
                        "activity-uuid": activity["uuid"],
                        "subjects": [
                            {"type": "component", "include-subjects": subjects},
                        ],
                    }
                    for activity in activities
                ],
            }]

    logger.info("Generated assessment plan for %s: %d control(s), %d activities",
                framework_id, len(control_ids), len(activities))
    return {PLAN_ROOT_KEY: plan}
