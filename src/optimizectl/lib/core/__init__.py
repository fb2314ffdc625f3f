# SPDX-FileCopyrightText: 2025-2026 Jiri Vyskocil <jiri@vyskocil.com>
#
# SPDX-License-Identifier: Apache-2.0

"""Layered configuration engine.

Re-exports the pieces most callers need::

    from optimizectl.lib.core import OptimizeConfig, set_property
"""

from .changes import (
    Change,
    apply_changes,
    apply_current_context,
    save_client_registration,
    save_server,
    save_token,
    set_execution_environment,
    set_property,
)
from .config import ConfigFile, OptimizeConfig, Overrides
from .errors import ConfigError

__all__ = [
    "Change", "apply_changes", "apply_current_context", "save_client_registration",
    "save_server", "save_token", "set_execution_environment", "set_property",
    "ConfigFile", "OptimizeConfig", "Overrides",
    "ConfigError",
]
