# CUI // SP-CTI
"""Assessment plan generation and scope tailoring."""

from complyplan.plan.scope import (
    AssessmentScope,
    FilterResult,
    TOOL_NAMESPACE,
    apply_scope,
    filter_control_selection,
    new_scope,
)

__all__ = [
    "AssessmentScope",
    "FilterResult",
    "TOOL_NAMESPACE",
    "apply_scope",
    "filter_control_selection",
    "new_scope",
]
