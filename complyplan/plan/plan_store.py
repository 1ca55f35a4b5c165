#!/usr/bin/env python3
# CUI // SP-CTI
"""Read and write assessment plan JSON in a workspace."""

import json
import logging
from pathlib import Path

from complyplan.compat.datetime_utils import oscal_timestamp
from complyplan.compliance.oscal_validator import validate_oscal_document
from complyplan.errors import PlanValidationError
from complyplan.plan.plan_generator import FRAMEWORK_ID_PROP
from complyplan.plan.scope import PLAN_ROOT_KEY, TOOL_NAMESPACE

logger = logging.getLogger(__name__)

ASSESSMENT_PLAN_FILE = "assessment-plan.json"


def read_plan(path, validator=validate_oscal_document):
    """Load an assessment plan and return the inner ``assessment-plan`` dict.

    Raises:
        FileNotFoundError: the file does not exist.
        PlanValidationError: the file is not valid JSON or fails validation.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise PlanValidationError(path, [f"Invalid JSON: {exc}"]) from exc

    result = validator(data, "assessment_plan")
    if not result["valid"]:
        raise PlanValidationError(path, result["errors"])
    return data[PLAN_ROOT_KEY]


def plan_framework_id(plan, namespace=TOOL_NAMESPACE):
    """Framework id recorded in a plan's metadata, or None."""
    plan = plan.get(PLAN_ROOT_KEY, plan)
    for prop in (plan.get("metadata") or {}).get("props") or []:
        if prop.get("name") == FRAMEWORK_ID_PROP and prop.get("ns") == namespace:
            return prop.get("value")
    return None


def write_plan(plan, framework_id, path, namespace=TOOL_NAMESPACE):
    """Write an assessment plan to ``path``.

    Stamps ``metadata.last-modified`` and records ``framework_id`` as a
    metadata prop so later commands can tell which framework the plan targets.

    Args:
        plan: Inner ``assessment-plan`` dict or the full document.
        framework_id: Framework the plan was generated for.
        path: Output file. Parent directories are created.
        namespace: Namespace of the framework-id prop.

    Returns:
        Path written.
    """
    plan = plan.get(PLAN_ROOT_KEY, plan)
    metadata = plan.setdefault("metadata", {})
    metadata["last-modified"] = oscal_timestamp()

    props = metadata.setdefault("props", [])
    for prop in props:
        if prop.get("name") == FRAMEWORK_ID_PROP and prop.get("ns") == namespace:
            prop["value"] = framework_id
            break
    else:
        props.append({"name": FRAMEWORK_ID_PROP, "ns": namespace, "value": framework_id})

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump({PLAN_ROOT_KEY: plan}, f, indent=2)
        f.write("\n")
    logger.debug("Wrote assessment plan for %s to %s", framework_id, path)
    return path
