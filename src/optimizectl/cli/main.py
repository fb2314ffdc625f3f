#!/usr/bin/env python3

import argparse

from .. import __version__
from ..lib._util.logging_utils import configure_logging
from ..lib.core.errors import ConfigError
from .commands import config as config_cmd

# Optional: bash completion via argcomplete
try:
    import argcomplete  # type: ignore
except ImportError:  # pragma: no cover - optional dep
    argcomplete = None  # type: ignore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="optimizectl",
        description="Manage the StormForge Optimize client configuration",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        metavar="FILE",
        help="Configuration file to read and write instead of the XDG location",
    )
    parser.add_argument("--context", help="Context to use for this invocation only")
    parser.add_argument("--env", help="Execution environment for this invocation only")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log output (-v info, -vv debug)",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)
    config_cmd.register(sub)
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()

    # Enable bash completion if argcomplete is present and activated
    if argcomplete is not None:  # pragma: no cover - shell integration
        argcomplete.autocomplete(parser)

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        handled = config_cmd.dispatch(args)
    except ConfigError as e:
        raise SystemExit(f"Error: {e}")
    except OSError as e:
        raise SystemExit(f"Error: could not access configuration: {e}")
    if not handled:
        parser.error("Unknown command")


if __name__ == "__main__":
    main()
