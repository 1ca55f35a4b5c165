# CUI // SP-CTI
"""complyplan cross-platform compatibility module.

Centralizes OS detection, data directory lookup and OSCAL timestamps.
"""
from complyplan.compat.platform_utils import (  # noqa: F401
    IS_WINDOWS,
    IS_MACOS,
    IS_LINUX,
    get_home_dir,
    get_data_home,
)
from complyplan.compat.datetime_utils import (  # noqa: F401
    utc_now,
    oscal_timestamp,
)
