#!/usr/bin/env python3
# CUI // SP-CTI
"""Read and write assessment scope configuration files (YAML).

The scope config pre-tailors a generated assessment plan:

    frameworkId: example-framework
    includeControls:
      - ac-1
      - ac-2

``scope_from_component_definitions`` builds the starting config for a
framework by listing every control the bundle implements for it; this is what
``complyplan plan --dry-run`` prints.
"""

import logging
from pathlib import Path

import yaml

from complyplan.compliance.component_definitions import framework_control_implementations
from complyplan.errors import ScopeConfigError
from complyplan.plan.scope import AssessmentScope, new_scope

logger = logging.getLogger(__name__)

SCOPE_CONFIG_FILE = "assessment-plan-filter.yml"


def parse_scope_config(data) -> AssessmentScope:
    """Build an AssessmentScope from a loaded scope config mapping."""
    if not isinstance(data, dict):
        raise ScopeConfigError(
            f"Scope config must be a mapping, got {type(data).__name__}"
        )

    framework_id = data.get("frameworkId")
    if not isinstance(framework_id, str) or not framework_id:
        raise ScopeConfigError("Scope config missing string field 'frameworkId'")

    controls = data.get("includeControls")
    if controls is None:
        controls = []
    if not isinstance(controls, list):
        raise ScopeConfigError(
            f"Scope config 'includeControls' must be a list, got {type(controls).__name__}"
        )

    return new_scope(framework_id, (str(c) for c in controls if c is not None))


def load_scope_config(path) -> AssessmentScope:
    """Load a scope config file.

    Raises:
        FileNotFoundError: the file does not exist.
        ScopeConfigError: the file is not valid YAML or not a scope config.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ScopeConfigError(f"Invalid YAML in {path}: {exc}", path=path) from exc

    scope = parse_scope_config(data if data is not None else {})
    logger.debug("Loaded scope config %s: framework=%s controls=%d",
                 path, scope.framework_id, len(scope.include_controls))
    return scope


def dump_scope_config(scope: AssessmentScope) -> str:
    """Render a scope as scope config YAML."""
    return yaml.safe_dump(scope.to_dict(), sort_keys=False, default_flow_style=False)


def write_scope_config(scope: AssessmentScope, path) -> Path:
    """Write a scope config file, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_scope_config(scope), encoding="utf-8")
    logger.info("Scope config written to %s", path)
    return path


def scope_from_component_definitions(framework_id, component_definitions) -> AssessmentScope:
    """Scope holding every control implemented for ``framework_id``."""
    control_ids = []
    for _component, implementation in framework_control_implementations(
        component_definitions, framework_id
    ):
        for requirement in implementation.get("implemented-requirements") or []:
            control_id = requirement.get("control-id")
            if control_id:
                control_ids.append(control_id)
    return new_scope(framework_id, control_ids)
