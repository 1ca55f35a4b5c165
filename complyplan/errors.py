#!/usr/bin/env python3
# CUI // SP-CTI
"""complyplan exception hierarchy.

Every error raised for malformed input derives from ``ComplyPlanError``,
which is a ``ValueError`` so callers catching ``ValueError`` keep working.
Missing files raise the builtin ``FileNotFoundError``.

Usage:
    from complyplan.errors import ScopeConfigError

    raise ScopeConfigError("Scope config missing 'frameworkId'", path=path)
"""


class ComplyPlanError(ValueError):
    """Base exception for complyplan input errors.

    Attributes:
        path: File the error relates to, if any.
    """

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = str(path) if path is not None else None


class ScopeConfigError(ComplyPlanError):
    """Scope config is not valid YAML or lacks required fields."""


class ComponentDefinitionError(ComplyPlanError):
    """A bundle file cannot be used as a component definition."""


class PlanGenerationError(ComplyPlanError):
    """No assessment plan can be built for the requested framework."""


class PlanValidationError(ComplyPlanError):
    """An assessment plan document failed validation.

    Attributes:
        errors: Validation messages.
    """

    def __init__(self, path, errors):
        self.errors = list(errors)
        super().__init__(
            f"Assessment plan {path} is invalid: " + "; ".join(self.errors),
            path=path,
        )
