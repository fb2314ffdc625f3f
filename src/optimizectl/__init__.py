"""optimizectl package.

Modules:
- optimizectl.cli: CLI entry point package (optimizectl)
- optimizectl.lib.core: Configuration model, merge, defaults, changes, session
- optimizectl.lib._util: Internal helpers (fs, terminal colours, logging)
"""

__all__ = [
    "cli",
    "lib",
]

# Version information - single source of truth using importlib.metadata
try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("optimizectl")
except PackageNotFoundError:
    # Development mode when the package is not installed
    __version__ = "unknown"
