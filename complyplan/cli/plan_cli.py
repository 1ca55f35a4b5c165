#!/usr/bin/env python3
# CUI // SP-CTI
"""complyplan command line: generate and tailor OSCAL assessment plans.

Usage:
    complyplan plan myframework
    complyplan plan myframework --dry-run > complyplan/assessment-plan-filter.yml
    complyplan plan myframework --load-config
    complyplan tailor --config ./assessment-plan-filter.yml
    complyplan -d plan myframework --bundle-dir ./bundles --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

from complyplan.compliance.component_definitions import find_component_definitions
from complyplan.compliance.oscal_validator import validate_oscal_document
from complyplan.errors import PlanValidationError
from complyplan.plan.app_directory import ApplicationDirectory
from complyplan.plan.plan_generator import (
    IMPORT_SSP_PLACEHOLDER,
    PLAN_VERSION,
    generate_assessment_plan,
)
from complyplan.plan.plan_store import (
    ASSESSMENT_PLAN_FILE,
    plan_framework_id,
    read_plan,
    write_plan,
)
from complyplan.plan.scope import PLAN_ROOT_KEY, TOOL_NAMESPACE
from complyplan.plan.scope_config import (
    SCOPE_CONFIG_FILE,
    dump_scope_config,
    load_scope_config,
    scope_from_component_definitions,
)

logger = logging.getLogger("complyplan")

BASE_DIR = Path(__file__).resolve().parent.parent.parent
CONFIG_PATH = BASE_DIR / "args" / "plan_config.yaml"

_DEFAULT_CONFIG = {
    "workspace": {
        "default_dir": "./complyplan",
        "plan_file": ASSESSMENT_PLAN_FILE,
        "scope_config_file": SCOPE_CONFIG_FILE,
    },
    "extensions": {"namespace": TOOL_NAMESPACE},
    "generator": {},
}


def _load_config(config_path=None):
    """Load plan_config.yaml merged over built-in defaults."""
    path = Path(config_path) if config_path else CONFIG_PATH
    config = {section: dict(values) for section, values in _DEFAULT_CONFIG.items()}
    if not path.exists():
        return config
    with open(path, "r", encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}
    for section, values in loaded.items():
        if isinstance(values, dict):
            config.setdefault(section, {}).update(values)
    return config


def _setup_logging(debug):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def _workspace_paths(args, config):
    workspace = Path(args.workspace or config["workspace"]["default_dir"])
    plan_path = workspace / config["workspace"]["plan_file"]
    scope_path = Path(args.config) if args.config else (
        workspace / config["workspace"]["scope_config_file"])
    return workspace, plan_path, scope_path


def _apply_scope_config(plan, scope_path, framework_id, namespace):
    scope = load_scope_config(scope_path)
    if framework_id and scope.framework_id != framework_id:
        logger.warning("Scope config %s targets framework '%s', plan targets '%s'",
                       scope_path, scope.framework_id, framework_id)
    scope.apply_scope(plan, log=logger.getChild("scope"), namespace=namespace)
    return scope


def _validate_or_raise(document, path):
    result = validate_oscal_document(document, "assessment_plan")
    if not result["valid"]:
        raise PlanValidationError(path, result["errors"])


def _report(args, summary, message):
    if args.json:
        print(json.dumps(summary, indent=2))
    else:
        print(message)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def run_plan(args, config):
    """Generate a new assessment plan for a framework."""
    namespace = config["extensions"]["namespace"]
    _workspace, plan_path, scope_path = _workspace_paths(args, config)

    if args.bundle_dir:
        bundle_dir = Path(args.bundle_dir)
    else:
        app_dir = ApplicationDirectory(create=True)
        logger.debug("Using application directory: %s", app_dir.app_dir())
        bundle_dir = app_dir.bundle_dir()
    logger.debug("Using bundle directory: %s for component definitions.", bundle_dir)

    component_definitions = find_component_definitions(bundle_dir)
    if not component_definitions:
        raise FileNotFoundError(f"No component definitions found in {bundle_dir}")

    if args.dry_run:
        scope = scope_from_component_definitions(args.framework_id, component_definitions)
        print(dump_scope_config(scope), end="")
        return 0

    generator = config.get("generator") or {}
    document = generate_assessment_plan(
        component_definitions,
        args.framework_id,
        import_ssp_href=generator.get("import_ssp_href", IMPORT_SSP_PLACEHOLDER),
        version=str(generator.get("plan_version", PLAN_VERSION)),
        namespace=namespace,
    )

    scope = None
    if args.load_config:
        scope = _apply_scope_config(document, scope_path, args.framework_id, namespace)

    _validate_or_raise(document, plan_path)
    write_plan(document, args.framework_id, plan_path, namespace=namespace)
    logger.info("Assessment plan written to %s", plan_path)

    _report(args, {
        "framework_id": args.framework_id,
        "plan_path": str(plan_path),
        "scope_applied": scope is not None,
        "include_controls": sorted(scope.include_controls) if scope else None,
    }, f"Assessment plan written to {plan_path}")
    return 0


def run_tailor(args, config):
    """Apply a scope config to the plan already in the workspace."""
    namespace = config["extensions"]["namespace"]
    workspace, plan_path, scope_path = _workspace_paths(args, config)

    try:
        plan = read_plan(plan_path)
    except FileNotFoundError as exc:
        raise FileNotFoundError(
            f"assessment plan does not exist in workspace {workspace}: {exc}\n\n"
            "Did you run the plan command?"
        ) from exc

    framework_id = plan_framework_id(plan, namespace)
    scope = _apply_scope_config(plan, scope_path, framework_id, namespace)

    _validate_or_raise({PLAN_ROOT_KEY: plan}, plan_path)
    write_plan(plan, framework_id or scope.framework_id, plan_path, namespace=namespace)
    logger.info("Tailored assessment plan written to %s", plan_path)

    _report(args, {
        "framework_id": framework_id or scope.framework_id,
        "plan_path": str(plan_path),
        "scope_config": str(scope_path),
        "include_controls": sorted(scope.include_controls),
    }, f"Tailored assessment plan written to {plan_path}")
    return 0


# ---------------------------------------------------------------------------
# CLI entrypoint
# ---------------------------------------------------------------------------

def build_parser():
    parser = argparse.ArgumentParser(
        prog="complyplan",
        description="Generate and tailor OSCAL assessment plans from component definitions.",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="output debug logs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-w", "--workspace",
        help="workspace to use for artifact generation (default: ./complyplan)",
    )
    common.add_argument(
        "-c", "--config",
        help=f"scope config file (default: <workspace>/{SCOPE_CONFIG_FILE})",
    )
    common.add_argument("--json", action="store_true", help="Output results as JSON")

    plan = subparsers.add_parser(
        "plan", parents=[common],
        help="Generate a new assessment plan for a given compliance framework id.",
    )
    plan.add_argument("framework_id", help="compliance framework id")
    plan.add_argument(
        "-n", "--dry-run", action="store_true",
        help="print a scope config listing every control for the framework",
    )
    plan.add_argument(
        "-l", "--load-config", action="store_true",
        help="apply the scope config to pre-tailor the generated assessment plan",
    )
    plan.add_argument(
        "--bundle-dir",
        help="directory of component definitions (default: application bundle dir)",
    )
    plan.set_defaults(func=run_plan)

    tailor = subparsers.add_parser(
        "tailor", parents=[common],
        help="Apply the scope config to the workspace assessment plan.",
    )
    tailor.set_defaults(func=run_tailor)
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.debug)

    try:
        config = _load_config()
        return args.func(args, config)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
