#!/usr/bin/env python3
# CUI // SP-CTI
"""Validation for the OSCAL artifacts complyplan reads and writes.

Two layers, both always run:
  1. Structural checks: top-level key, UUID and timestamp formats, metadata
     fields, OSCAL version, and artifact-specific required blocks.
  2. Pydantic v2 document models covering the same required structure with
     typed fields (extra keys allowed).

Supported artifact types: ``assessment_plan`` and ``component_definition``.

Usage:
    python -m complyplan.compliance.oscal_validator /path/assessment-plan.json --json
"""

import argparse
import json
import re
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

SUPPORTED_OSCAL_VERSIONS = ("1.1.2", "1.1.3")

TOP_LEVEL_KEYS = {
    "assessment_plan": "assessment-plan",
    "component_definition": "component-definition",
}

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"
)

ISO_TIMESTAMP_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})$"
)

MAX_ERRORS = 20


# ---------------------------------------------------------------------------
# Pydantic document models
# ---------------------------------------------------------------------------

class _Model(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class _Metadata(_Model):
    title: str
    last_modified: str = Field(alias="last-modified")
    version: str
    oscal_version: str = Field(alias="oscal-version")


class _SelectControlById(_Model):
    control_id: str = Field(alias="control-id")
    statement_ids: Optional[List[str]] = Field(default=None, alias="statement-ids")


class _ControlSelection(_Model):
    include_all: Optional[dict] = Field(default=None, alias="include-all")
    include_controls: Optional[List[_SelectControlById]] = Field(
        default=None, alias="include-controls")
    exclude_controls: Optional[List[_SelectControlById]] = Field(
        default=None, alias="exclude-controls")


class _ReviewedControls(_Model):
    control_selections: List[_ControlSelection] = Field(alias="control-selections")


class _Step(_Model):
    uuid: str
    reviewed_controls: Optional[_ReviewedControls] = Field(
        default=None, alias="reviewed-controls")


class _Activity(_Model):
    uuid: str
    description: str
    steps: Optional[List[_Step]] = None
    related_controls: Optional[_ReviewedControls] = Field(
        default=None, alias="related-controls")


class _LocalDefinitions(_Model):
    activities: Optional[List[_Activity]] = None


class _ImportSsp(_Model):
    href: str


class _AssessmentPlan(_Model):
    uuid: str
    metadata: _Metadata
    import_ssp: _ImportSsp = Field(alias="import-ssp")
    local_definitions: Optional[_LocalDefinitions] = Field(
        default=None, alias="local-definitions")
    reviewed_controls: _ReviewedControls = Field(alias="reviewed-controls")


class _AssessmentPlanDocument(_Model):
    assessment_plan: _AssessmentPlan = Field(alias="assessment-plan")


class _Component(_Model):
    uuid: str
    type: str
    title: str
    description: str
    control_implementations: Optional[List[dict]] = Field(
        default=None, alias="control-implementations")


class _ComponentDefinition(_Model):
    uuid: str
    metadata: _Metadata
    components: Optional[List[_Component]] = None


class _ComponentDefinitionDocument(_Model):
    component_definition: _ComponentDefinition = Field(alias="component-definition")


_DOCUMENT_MODELS = {
    "assessment_plan": _AssessmentPlanDocument,
    "component_definition": _ComponentDefinitionDocument,
}


# ---------------------------------------------------------------------------
# Structural checks
# ---------------------------------------------------------------------------

def _detect_artifact_type(data):
    for artifact_type, key in TOP_LEVEL_KEYS.items():
        if key in data:
            return artifact_type
    return None


def _validate_metadata(metadata, errors):
    if not metadata:
        errors.append("Missing 'metadata' block.")
        return

    for name in ["title", "last-modified", "version", "oscal-version"]:
        if name not in metadata:
            errors.append(f"Missing metadata field: '{name}'.")

    last_mod = metadata.get("last-modified", "")
    if last_mod and not ISO_TIMESTAMP_PATTERN.match(str(last_mod)):
        errors.append(
            f"Metadata 'last-modified' timestamp format invalid: '{last_mod}'."
        )

    oscal_ver = metadata.get("oscal-version", "")
    if oscal_ver and oscal_ver not in SUPPORTED_OSCAL_VERSIONS:
        errors.append(
            f"Unsupported OSCAL version '{oscal_ver}' "
            f"(supported: {', '.join(SUPPORTED_OSCAL_VERSIONS)})."
        )


def _validate_selections(selections, path, errors):
    """Check every include-controls list present is non-empty and well formed."""
    if not isinstance(selections, list):
        errors.append(f"'{path}' must be an array.")
        return
    for i, selection in enumerate(selections):
        entries = selection.get("include-controls") if isinstance(selection, dict) else None
        if entries is None:
            continue
        where = f"{path}[{i}].include-controls"
        if not isinstance(entries, list) or not entries:
            errors.append(f"'{where}' must be a non-empty array when present.")
            continue
        for j, entry in enumerate(entries):
            if not isinstance(entry, dict) or not entry.get("control-id"):
                errors.append(f"'{where}[{j}]' missing 'control-id'.")


def _validate_assessment_plan(doc, errors):
    """Validate Assessment Plan-specific structure."""
    if "import-ssp" not in doc:
        errors.append("Assessment Plan missing 'import-ssp' block.")
    elif "href" not in (doc.get("import-ssp") or {}):
        errors.append("Assessment Plan 'import-ssp' missing 'href'.")

    reviewed = doc.get("reviewed-controls")
    if not reviewed:
        errors.append("Assessment Plan missing 'reviewed-controls' block.")
    elif not reviewed.get("control-selections"):
        errors.append(
            "Assessment Plan 'reviewed-controls' missing 'control-selections'."
        )
    else:
        _validate_selections(reviewed["control-selections"],
                             "reviewed-controls.control-selections", errors)

    activities = (doc.get("local-definitions") or {}).get("activities") or []
    for a, activity in enumerate(activities):
        related = activity.get("related-controls")
        if related and "control-selections" in related:
            _validate_selections(
                related["control-selections"],
                f"local-definitions.activities[{a}].related-controls.control-selections",
                errors,
            )
        for s, step in enumerate(activity.get("steps") or []):
            reviewed_step = step.get("reviewed-controls")
            if reviewed_step and "control-selections" in reviewed_step:
                _validate_selections(
                    reviewed_step["control-selections"],
                    f"local-definitions.activities[{a}].steps[{s}]"
                    f".reviewed-controls.control-selections",
                    errors,
                )


def _validate_component_definition(doc, errors):
    """Validate Component Definition-specific structure."""
    if "components" not in doc:
        errors.append("Component Definition missing 'components' array.")
    elif not isinstance(doc["components"], list):
        errors.append("Component Definition 'components' must be an array.")
    elif len(doc["components"]) == 0:
        errors.append("Component Definition 'components' array is empty.")


def _validate_uuids_recursive(obj, errors, path="", max_errors=MAX_ERRORS):
    """Recursively validate UUID fields in the document."""
    if len(errors) >= max_errors:
        return

    if isinstance(obj, dict):
        for key, value in obj.items():
            current_path = f"{path}.{key}" if path else key
            if (key == "uuid" or key.endswith("-uuid")) and isinstance(value, str):
                if not UUID_PATTERN.match(value):
                    errors.append(f"Invalid UUID at '{current_path}': '{value}'.")
                    if len(errors) >= max_errors:
                        return
            else:
                _validate_uuids_recursive(value, errors, current_path, max_errors)
    elif isinstance(obj, list):
        for i, item in enumerate(obj):
            _validate_uuids_recursive(item, errors, f"{path}[{i}]", max_errors)


def _validate_pydantic(data, artifact_type, errors):
    model_cls = _DOCUMENT_MODELS.get(artifact_type)
    if model_cls is None:
        return
    try:
        model_cls.model_validate(data)
    except ValidationError as exc:
        for err in exc.errors()[:MAX_ERRORS]:
            loc = ".".join(str(part) for part in err.get("loc", ()))
            errors.append(f"Pydantic validation error at '{loc}': {err.get('msg')}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def validate_oscal_document(data, artifact_type=None):
    """Validate an in-memory OSCAL document.

    Args:
        data: The full document dict (with its top-level OSCAL key).
        artifact_type: ``assessment_plan`` or ``component_definition``.
            Auto-detected when None.

    Returns:
        Dict with valid (bool), errors (list of strings) and artifact_type.
    """
    if not isinstance(data, dict):
        return {"valid": False, "errors": ["Root must be a JSON object."],
                "artifact_type": artifact_type}

    if artifact_type is None:
        artifact_type = _detect_artifact_type(data)
        if artifact_type is None:
            return {
                "valid": False,
                "errors": [
                    "No recognized OSCAL top-level key found. "
                    f"Expected one of: {list(TOP_LEVEL_KEYS.values())}"
                ],
                "artifact_type": None,
            }

    errors = []
    expected_key = TOP_LEVEL_KEYS.get(artifact_type)
    if expected_key is None:
        raise ValueError(f"Unsupported artifact type: {artifact_type}")

    doc = data.get(expected_key)
    if not isinstance(doc, dict):
        errors.append(f"Missing required top-level key: '{expected_key}'")
    else:
        if "uuid" not in doc:
            errors.append("Missing document 'uuid'.")
        _validate_metadata(doc.get("metadata"), errors)

        if artifact_type == "assessment_plan":
            _validate_assessment_plan(doc, errors)
        elif artifact_type == "component_definition":
            _validate_component_definition(doc, errors)

        _validate_uuids_recursive(data, errors)
        _validate_pydantic(data, artifact_type, errors)

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "artifact_type": artifact_type,
    }


def validate_oscal_file(file_path, artifact_type=None):
    """Validate an OSCAL JSON file. See ``validate_oscal_document``."""
    path = Path(file_path)
    if not path.exists():
        return {"valid": False, "errors": [f"File not found: {file_path}"],
                "artifact_type": artifact_type}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        return {"valid": False, "errors": [f"Invalid JSON: {exc}"],
                "artifact_type": artifact_type}

    result = validate_oscal_document(data, artifact_type)
    result["file_path"] = str(path)
    return result


# ---------------------------------------------------------------------------
# CLI entrypoint
# ---------------------------------------------------------------------------

def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Validate OSCAL assessment plans and component definitions.",
    )
    parser.add_argument("file", help="Path to an OSCAL JSON file")
    parser.add_argument(
        "--artifact",
        choices=sorted(TOP_LEVEL_KEYS),
        help="Artifact type (auto-detected by default)",
    )
    parser.add_argument("--json", action="store_true", help="Output results as JSON")
    args = parser.parse_args(argv)

    result = validate_oscal_file(args.file, args.artifact)
    if args.json:
        print(json.dumps(result, indent=2))
    elif result["valid"]:
        print(f"VALID: {args.file}")
    else:
        print(f"INVALID: {args.file}")
        for err in result["errors"]:
            print(f"  - {err}")
    return 0 if result["valid"] else 1


if __name__ == "__main__":
    sys.exit(main())
