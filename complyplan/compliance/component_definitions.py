#!/usr/bin/env python3
# CUI // SP-CTI
"""Load OSCAL component definitions from a bundle directory.

Component definitions describe which controls each component implements and
which rules and checks verify them. The rule/check layout follows the
compliance-trestle convention of grouping component props by ``remarks``:

    {"name": "Rule_Id",           "value": "audit_rules_login", "remarks": "rs_1"}
    {"name": "Rule_Description",  "value": "Record login events", "remarks": "rs_1"}
    {"name": "Check_Id",          "value": "xccdf_check_login", "remarks": "rs_1"}
    {"name": "Check_Description", "value": "Login audit rule present", "remarks": "rs_1"}

Implemented requirements link to rules with a ``Rule_Id`` prop, and control
implementations name their framework with a ``framework_id`` prop.
"""

import json
import logging
from pathlib import Path

from complyplan.compliance.oscal_validator import validate_oscal_document
from complyplan.errors import ComponentDefinitionError

logger = logging.getLogger(__name__)

FRAMEWORK_PROP = "framework_id"
RULE_ID_PROP = "Rule_Id"
RULE_DESCRIPTION_PROP = "Rule_Description"
CHECK_ID_PROP = "Check_Id"
CHECK_DESCRIPTION_PROP = "Check_Description"


def _prop_values(obj, name):
    return [p.get("value") for p in obj.get("props") or [] if p.get("name") == name]


def find_component_definitions(bundle_dir, validator=validate_oscal_document):
    """Load and validate every component definition in ``bundle_dir``.

    Args:
        bundle_dir: Directory holding ``*.json`` component definitions.
        validator: Callable returning a ``{"valid", "errors"}`` dict.

    Returns:
        List of inner ``component-definition`` dicts, in file name order.

    Raises:
        FileNotFoundError: ``bundle_dir`` does not exist.
        ComponentDefinitionError: a file is not valid JSON or fails validation.
    """
    bundle_dir = Path(bundle_dir)
    if not bundle_dir.is_dir():
        raise FileNotFoundError(f"Bundle directory not found: {bundle_dir}")

    definitions = []
    for path in sorted(bundle_dir.glob("*.json")):
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ComponentDefinitionError(f"Invalid JSON in {path}: {exc}", path=path) from exc

        result = validator(data, "component_definition")
        if not result["valid"]:
            raise ComponentDefinitionError(
                f"Component definition {path} failed validation: "
                + "; ".join(result["errors"]),
                path=path,
            )
        definitions.append(data["component-definition"])
        logger.debug("Loaded component definition %s", path)

    logger.debug("Found %d component definition(s) in %s", len(definitions), bundle_dir)
    return definitions


def framework_control_implementations(component_definitions, framework_id):
    """Yield ``(component, control_implementation)`` pairs for a framework.

    Control implementations without a framework prop apply to any framework.
    """
    for definition in component_definitions or []:
        for component in definition.get("components") or []:
            for implementation in component.get("control-implementations") or []:
                frameworks = _prop_values(implementation, FRAMEWORK_PROP)
                if frameworks and framework_id not in frameworks:
                    continue
                yield component, implementation


def requirement_rule_ids(requirement):
    """Rule ids an implemented requirement is verified by."""
    return [v for v in _prop_values(requirement, RULE_ID_PROP) if v]


def component_rule_sets(component):
    """Group a component's rule and check props by rule set.

    Returns:
        Dict keyed by rule id, each ``{"rule_id", "description", "checks"}``
        where checks is a list of ``{"check_id", "description"}``.
    """
    grouped = {}
    order = []
    for prop in component.get("props") or []:
        remarks = prop.get("remarks")
        if not remarks:
            continue
        if remarks not in grouped:
            grouped[remarks] = {}
            order.append(remarks)
        grouped[remarks].setdefault(prop.get("name"), []).append(prop.get("value"))

    rule_sets = {}
    for remarks in order:
        values = grouped[remarks]
        rule_ids = values.get(RULE_ID_PROP) or []
        if not rule_ids:
            continue
        check_ids = values.get(CHECK_ID_PROP) or []
        check_descriptions = values.get(CHECK_DESCRIPTION_PROP) or []
        checks = []
        for i, check_id in enumerate(check_ids):
            checks.append({
                "check_id": check_id,
                "description": check_descriptions[i] if i < len(check_descriptions) else check_id,
            })
        descriptions = values.get(RULE_DESCRIPTION_PROP) or []
        rule_sets[rule_ids[0]] = {
            "rule_id": rule_ids[0],
            "description": descriptions[0] if descriptions else rule_ids[0],
            "checks": checks,
        }
    return rule_sets
