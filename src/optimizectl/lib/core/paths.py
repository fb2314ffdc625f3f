# SPDX-FileCopyrightText: 2025-2026 Jiri Vyskocil <jiri@vyskocil.com>
#
# SPDX-License-Identifier: Apache-2.0

"""Base-directory resolution for the configuration file.

Follows the XDG Base Directory layout:
https://specifications.freedesktop.org/basedir-spec/basedir-spec-latest.html
"""

import logging
import os
from pathlib import Path

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "stormforge/config"
CONFIG_FILE_ENV = "OPTIMIZECTL_CONFIG_FILE"

HOME_ENV = "HOME"
XDG_CONFIG_HOME_ENV = "XDG_CONFIG_HOME"
XDG_CONFIG_HOME_DEFAULT = ".config"
XDG_CONFIG_DIRS_ENV = "XDG_CONFIG_DIRS"
XDG_CONFIG_DIRS_DEFAULT = "/etc/xdg"


def xdg_config_home() -> Path:
    """
    Per-user configuration directory.

    Priority:
      1. XDG_CONFIG_HOME
      2. $HOME/.config
      3. the platform's user config directory (HOME unset)
    """
    env = os.environ.get(XDG_CONFIG_HOME_ENV)
    if env:
        return Path(env)
    home = os.environ.get(HOME_ENV)
    if home:
        return Path(home) / XDG_CONFIG_HOME_DEFAULT
    return Path(user_config_dir())


def xdg_config_dirs() -> list[Path]:
    """System configuration directories, most important first."""
    env = os.environ.get(XDG_CONFIG_DIRS_ENV) or XDG_CONFIG_DIRS_DEFAULT
    return [Path(d) for d in env.split(os.pathsep) if d]


def config_search_paths(filename: str = CONFIG_FILENAME) -> list[Path]:
    """Return the ordered list of paths that will be checked for the config file."""
    return [d / filename for d in [xdg_config_home(), *xdg_config_dirs()]]


def config_filenames(filename: str = CONFIG_FILENAME) -> tuple[Path, Path]:
    """Return the ``(read, write)`` paths of the configuration file.

    The read path is the first existing file of :func:`config_search_paths`,
    or the per-user path when none exist.  The write path is always the
    per-user path, so a system-wide file is never modified in place.

    ``OPTIMIZECTL_CONFIG_FILE`` replaces both paths when set.
    """
    env_file = os.environ.get(CONFIG_FILE_ENV)
    if env_file:
        path = Path(env_file).expanduser()
        return path, path

    user_path = xdg_config_home() / filename
    current = user_path
    for candidate in config_search_paths(filename):
        if candidate.is_file():
            current = candidate
            break
    logger.debug("Configuration read from %s, written to %s", current, user_path)
    return current, user_path
