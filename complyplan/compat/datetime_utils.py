# CUI // SP-CTI
"""Timezone-aware datetime utilities for complyplan.

OSCAL metadata wants ISO 8601 timestamps with an explicit UTC offset;
``oscal_timestamp`` produces the millisecond ``Z`` form used across plans.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def oscal_timestamp(when: datetime = None) -> str:
    """Format ``when`` (default: now) as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    when = when or utc_now()
    return when.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
