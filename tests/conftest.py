#!/usr/bin/env python3
# CUI // SP-CTI
"""Shared pytest fixtures for the complyplan test suite.

Centralizes sample OSCAL documents (assessment plans and component
definitions) so each test module builds on the same shapes.
"""

import copy
import json
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path
BASE_DIR = Path(__file__).resolve().parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))


# ---------------------------------------------------------------------------
# Sample documents
# ---------------------------------------------------------------------------

SAMPLE_METADATA = {
    "title": "Sample Assessment Plan",
    "last-modified": "2025-01-01T00:00:00.000Z",
    "version": "1.0.0",
    "oscal-version": "1.1.3",
}

SAMPLE_COMPONENT_DEFINITION = {
    "component-definition": {
        "uuid": "8e5b4a1c-0000-4000-8000-000000000001",
        "metadata": {
            "title": "Sample Component Definition",
            "last-modified": "2025-01-01T00:00:00.000Z",
            "version": "1.0.0",
            "oscal-version": "1.1.3",
        },
        "components": [
            {
                "uuid": "8e5b4a1c-0000-4000-8000-000000000002",
                "type": "service",
                "title": "Sample Service",
                "description": "Service under assessment.",
                "props": [
                    {"name": "Rule_Id", "value": "audit_login", "remarks": "rs_1"},
                    {"name": "Rule_Description", "value": "Record login events", "remarks": "rs_1"},
                    {"name": "Check_Id", "value": "check_audit_login", "remarks": "rs_1"},
                    {"name": "Check_Description", "value": "Login audit rule present",
                     "remarks": "rs_1"},
                    {"name": "Rule_Id", "value": "password_length", "remarks": "rs_2"},
                    {"name": "Rule_Description", "value": "Minimum password length",
                     "remarks": "rs_2"},
                ],
                "control-implementations": [
                    {
                        "uuid": "8e5b4a1c-0000-4000-8000-000000000003",
                        "source": "https://example.com/profiles/sample.json",
                        "description": "Sample framework implementation.",
                        "props": [
                            {"name": "framework_id", "value": "sample-framework"},
                        ],
                        "implemented-requirements": [
                            {
                                "uuid": "8e5b4a1c-0000-4000-8000-000000000004",
                                "control-id": "au-2",
                                "description": "Audit events.",
                                "props": [{"name": "Rule_Id", "value": "audit_login"}],
                            },
                            {
                                "uuid": "8e5b4a1c-0000-4000-8000-000000000005",
                                "control-id": "ia-5",
                                "description": "Authenticator management.",
                                "props": [{"name": "Rule_Id", "value": "password_length"}],
                            },
                            {
                                "uuid": "8e5b4a1c-0000-4000-8000-000000000006",
                                "control-id": "ac-2",
                                "description": "Account management.",
                            },
                        ],
                    },
                    {
                        "uuid": "8e5b4a1c-0000-4000-8000-000000000007",
                        "source": "https://example.com/profiles/other.json",
                        "description": "Other framework implementation.",
                        "props": [
                            {"name": "framework_id", "value": "other-framework"},
                        ],
                        "implemented-requirements": [
                            {
                                "uuid": "8e5b4a1c-0000-4000-8000-000000000008",
                                "control-id": "cm-6",
                                "description": "Configuration settings.",
                            },
                        ],
                    },
                ],
            }
        ],
    }
}


def selection(*control_ids, include_all=False, exclude=None):
    """Build an OSCAL control selection."""
    node = {}
    if include_all:
        node["include-all"] = {}
    if control_ids:
        node["include-controls"] = [{"control-id": cid} for cid in control_ids]
    if exclude:
        node["exclude-controls"] = [{"control-id": cid} for cid in exclude]
    return node


def build_plan(activities=None, top_level=None):
    """Build an inner assessment-plan dict."""
    plan = {
        "uuid": "5a2c9f3e-0000-4000-8000-000000000001",
        "metadata": copy.deepcopy(SAMPLE_METADATA),
        "import-ssp": {"href": "#ssp"},
        "reviewed-controls": {
            "control-selections": top_level if top_level is not None else [selection()],
        },
    }
    if activities is not None:
        plan["local-definitions"] = {"activities": activities}
    return plan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def component_definition_doc():
    return copy.deepcopy(SAMPLE_COMPONENT_DEFINITION)


@pytest.fixture
def bundle_dir(tmp_path, component_definition_doc):
    """Bundle directory holding the sample component definition."""
    path = tmp_path / "bundles"
    path.mkdir()
    (path / "sample.json").write_text(
        json.dumps(component_definition_doc), encoding="utf-8"
    )
    return path


@pytest.fixture
def nested_plan():
    """Plan with one activity (two steps) and a top-level selection."""
    activity = {
        "uuid": "5a2c9f3e-0000-4000-8000-000000000002",
        "title": "audit_login",
        "description": "Audit login events.",
        "props": [{"name": "method", "value": "TEST"}],
        "related-controls": {"control-selections": [selection("au-2", "ac-2")]},
        "steps": [
            {
                "uuid": "5a2c9f3e-0000-4000-8000-000000000003",
                "title": "check_audit_login",
                "description": "Check login audit rule.",
                "reviewed-controls": {"control-selections": [selection("au-2")]},
            },
            {
                "uuid": "5a2c9f3e-0000-4000-8000-000000000004",
                "title": "check_accounts",
                "description": "Check accounts.",
                "reviewed-controls": {"control-selections": [selection("ac-2")]},
            },
        ],
    }
    return build_plan(
        activities=[activity],
        top_level=[selection("au-2", "ac-2", "ia-5", exclude=["ia-5"])],
    )
