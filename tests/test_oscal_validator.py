#!/usr/bin/env python3
# CUI // SP-CTI
"""Tests for OSCAL validation (complyplan/compliance/oscal_validator.py)."""

import json

import pytest

from tests.conftest import build_plan, selection


def _plan_doc(**kwargs):
    return {"assessment-plan": build_plan(**kwargs)}


class TestValidateAssessmentPlan:
    """Structural and pydantic checks on assessment plans."""

    def test_valid_plan(self, nested_plan):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        result = validate_oscal_document({"assessment-plan": nested_plan})
        assert result["valid"], result["errors"]
        assert result["artifact_type"] == "assessment_plan"

    def test_missing_import_ssp(self):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        doc = _plan_doc()
        del doc["assessment-plan"]["import-ssp"]
        result = validate_oscal_document(doc)
        assert not result["valid"]
        assert "Assessment Plan missing 'import-ssp' block." in result["errors"]

    def test_missing_reviewed_controls(self):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        doc = _plan_doc()
        del doc["assessment-plan"]["reviewed-controls"]
        result = validate_oscal_document(doc)
        assert "Assessment Plan missing 'reviewed-controls' block." in result["errors"]

    def test_empty_include_controls_rejected(self):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        doc = _plan_doc(top_level=[{"include-controls": []}])
        result = validate_oscal_document(doc)
        assert not result["valid"]
        assert any("must be a non-empty array" in e for e in result["errors"])

    def test_step_entry_missing_control_id(self):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        activity = {
            "uuid": "5a2c9f3e-0000-4000-8000-000000000009",
            "description": "d",
            "steps": [{
                "uuid": "5a2c9f3e-0000-4000-8000-00000000000a",
                "reviewed-controls": {
                    "control-selections": [{"include-controls": [{"statement-ids": ["x"]}]}],
                },
            }],
        }
        result = validate_oscal_document(_plan_doc(activities=[activity]))
        assert not result["valid"]
        assert any("steps[0]" in e and "missing 'control-id'" in e for e in result["errors"])

    def test_selection_without_include_controls_is_valid(self):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        doc = _plan_doc(top_level=[selection(exclude=["ac-2"])])
        assert validate_oscal_document(doc)["valid"]

    def test_activity_description_required(self):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        activity = {"uuid": "5a2c9f3e-0000-4000-8000-000000000009"}
        result = validate_oscal_document(_plan_doc(activities=[activity]))
        assert not result["valid"]
        assert any(e.startswith("Pydantic validation error") for e in result["errors"])


class TestValidateCommonChecks:
    """Metadata, UUID and detection checks."""

    def test_invalid_uuid(self):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        doc = _plan_doc()
        doc["assessment-plan"]["uuid"] = "not-a-uuid"
        result = validate_oscal_document(doc)
        assert "Invalid UUID at 'assessment-plan.uuid': 'not-a-uuid'." in result["errors"]

    def test_invalid_reference_uuid(self):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        doc = _plan_doc()
        doc["assessment-plan"]["assessment-subjects"] = [
            {"type": "component", "include-subjects": [{"subject-uuid": "bad"}]},
        ]
        result = validate_oscal_document(doc)
        assert any("subject-uuid" in e for e in result["errors"])

    @pytest.mark.parametrize("timestamp", [
        "2025-01-01T00:00:00Z",
        "2025-01-01T00:00:00.123Z",
        "2025-01-01T00:00:00+05:30",
    ])
    def test_timestamp_accepted(self, timestamp):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        doc = _plan_doc()
        doc["assessment-plan"]["metadata"]["last-modified"] = timestamp
        assert validate_oscal_document(doc)["valid"]

    def test_timestamp_rejected(self):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        doc = _plan_doc()
        doc["assessment-plan"]["metadata"]["last-modified"] = "2025-01-01"
        result = validate_oscal_document(doc)
        assert any("timestamp format invalid" in e for e in result["errors"])

    def test_unsupported_oscal_version(self):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        doc = _plan_doc()
        doc["assessment-plan"]["metadata"]["oscal-version"] = "1.0.0"
        result = validate_oscal_document(doc)
        assert any("Unsupported OSCAL version" in e for e in result["errors"])

    def test_missing_metadata_fields(self):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        doc = _plan_doc()
        del doc["assessment-plan"]["metadata"]["title"]
        result = validate_oscal_document(doc)
        assert "Missing metadata field: 'title'." in result["errors"]

    def test_unknown_top_level(self):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        result = validate_oscal_document({"catalog": {}})
        assert not result["valid"]
        assert result["artifact_type"] is None

    def test_root_not_object(self):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        assert not validate_oscal_document([])["valid"]

    def test_wrong_declared_type(self, component_definition_doc):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        result = validate_oscal_document(component_definition_doc, "assessment_plan")
        assert "Missing required top-level key: 'assessment-plan'" in result["errors"]

    def test_unsupported_artifact_type(self):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        with pytest.raises(ValueError, match="Unsupported artifact type"):
            validate_oscal_document({"catalog": {}}, "catalog")


class TestValidateComponentDefinition:
    """Component definition checks."""

    def test_valid(self, component_definition_doc):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        result = validate_oscal_document(component_definition_doc)
        assert result["valid"], result["errors"]
        assert result["artifact_type"] == "component_definition"

    def test_empty_components(self, component_definition_doc):
        from complyplan.compliance.oscal_validator import validate_oscal_document

        component_definition_doc["component-definition"]["components"] = []
        result = validate_oscal_document(component_definition_doc)
        assert "Component Definition 'components' array is empty." in result["errors"]


class TestValidateFile:
    """File-level validation and CLI."""

    def test_file_not_found(self, tmp_path):
        from complyplan.compliance.oscal_validator import validate_oscal_file

        result = validate_oscal_file(tmp_path / "missing.json")
        assert not result["valid"]
        assert result["errors"][0].startswith("File not found")

    def test_invalid_json(self, tmp_path):
        from complyplan.compliance.oscal_validator import validate_oscal_file

        path = tmp_path / "bad.json"
        path.write_text("{", encoding="utf-8")
        result = validate_oscal_file(path)
        assert result["errors"][0].startswith("Invalid JSON")

    def test_file_path_recorded(self, tmp_path, nested_plan):
        from complyplan.compliance.oscal_validator import validate_oscal_file

        path = tmp_path / "plan.json"
        path.write_text(json.dumps({"assessment-plan": nested_plan}), encoding="utf-8")
        result = validate_oscal_file(path)
        assert result["valid"]
        assert result["file_path"] == str(path)

    def test_main_json(self, tmp_path, nested_plan, capsys):
        from complyplan.compliance.oscal_validator import main

        path = tmp_path / "plan.json"
        path.write_text(json.dumps({"assessment-plan": nested_plan}), encoding="utf-8")
        assert main([str(path), "--json"]) == 0
        assert json.loads(capsys.readouterr().out)["valid"] is True

    def test_main_invalid(self, tmp_path, capsys):
        from complyplan.compliance.oscal_validator import main

        path = tmp_path / "plan.json"
        path.write_text(json.dumps({"assessment-plan": {}}), encoding="utf-8")
        assert main([str(path), "--artifact", "assessment_plan"]) == 1
        out = capsys.readouterr().out
        assert out.startswith(f"INVALID: {path}")
        assert "  - Missing document 'uuid'." in out
