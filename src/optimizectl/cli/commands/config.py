"""Configuration CLI commands: view, contexts, environment and properties."""

from __future__ import annotations

import argparse
import os
from pathlib import Path

from ...lib._util.ansi import (
    gray as _gray,
    green as _green,
    supports_color as _supports_color,
    yes_no as _yes_no,
)
from ...lib.core.changes import apply_current_context, set_execution_environment, set_property
from ...lib.core.config import OptimizeConfig, Overrides
from ...lib.core.errors import UnknownReferenceError
from ...lib.core.paths import CONFIG_FILE_ENV, config_filenames, config_search_paths


def _complete_context_names(
    prefix: str, parsed_args: argparse.Namespace, **kwargs: object
) -> list[str]:  # pragma: no cover
    """Return context names matching *prefix* for argcomplete."""
    try:
        names = [c.name for c in _load(parsed_args).data.contexts]
    except Exception:
        return []
    return [n for n in names if n.startswith(prefix)]


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    """Register the ``config`` command and its subcommands."""
    p_config = subparsers.add_parser("config", help="Work with the configuration file")
    csub = p_config.add_subparsers(dest="config_cmd", required=True)

    p_view = csub.add_parser("view", help="Show the resolved configuration")
    p_view.add_argument(
        "--minify", action="store_true", help="Only show the current context and its references"
    )
    p_view.add_argument(
        "--decode-jwt",
        action="store_true",
        help="Show access token claims instead of the raw tokens",
    )

    csub.add_parser("get-contexts", help="List the configured contexts")
    csub.add_parser("current-context", help="Show the current context name")

    p_use = csub.add_parser("use-context", help="Change the current context")
    _a = p_use.add_argument("context_name", help="Context name")
    try:
        _a.completer = _complete_context_names  # type: ignore[attr-defined]
    except AttributeError:
        pass

    p_set_ctx = csub.add_parser(
        "set-context", help="Create or update a context and make it the current context"
    )
    p_set_ctx.add_argument("context_name", help="Context name")
    p_set_ctx.add_argument("--server", default="", help="Server name")
    p_set_ctx.add_argument("--authorization", default="", help="Authorization name")
    p_set_ctx.add_argument("--cluster", default="", help="Cluster name")

    p_set = csub.add_parser("set", help="Set a single property using dotted notation")
    p_set.add_argument("name", help="Property name, e.g. context.default.cluster")
    p_set.add_argument("value", help="Property value")

    p_env = csub.add_parser("env", help="Show or change the execution environment")
    p_env.add_argument("value", nargs="?", help="production, staging or development")

    csub.add_parser("paths", help="Show where the configuration is read from and written to")


def dispatch(args: argparse.Namespace) -> bool:
    """Handle the config command.  Returns True if handled."""
    if args.cmd != "config":
        return False

    if args.config_cmd == "paths":
        _print_paths(args)
        return True

    cfg = _load(args)
    match args.config_cmd:
        case "view":
            print(cfg.marshal(minify=args.minify, decode_jwt=args.decode_jwt), end="")
        case "get-contexts":
            _print_contexts(cfg)
        case "current-context":
            print(cfg.data.current_context)
        case "use-context":
            if cfg.context(args.context_name) is None:
                raise UnknownReferenceError("context", args.context_name)
            _update(cfg, set_property("current-context", args.context_name))
        case "set-context":
            _update(
                cfg,
                apply_current_context(
                    args.context_name, args.server, args.authorization, args.cluster
                ),
            )
        case "set":
            _update(cfg, set_property(args.name, args.value))
        case "env":
            if args.value is None:
                print(cfg.environment())
            else:
                _update(cfg, set_execution_environment(args.value))
        case _:
            return False
    return True


def _load(args: argparse.Namespace) -> OptimizeConfig:
    overrides = Overrides(
        context=getattr(args, "context", None) or "",
        environment=getattr(args, "env", None) or "",
    )
    filename = getattr(args, "config", None)
    return OptimizeConfig(
        filename=Path(filename).expanduser() if filename else None, overrides=overrides
    ).load()


def _update(cfg: OptimizeConfig, change) -> None:
    cfg.update(change)
    cfg.write()


def _print_contexts(cfg: OptimizeConfig) -> None:
    color_enabled = _supports_color()
    current = cfg.data.current_context
    print(f"{'CURRENT':<8}{'NAME':<20}{'SERVER':<20}{'AUTHORIZATION':<20}CLUSTER")
    for entry in cfg.data.contexts:
        ctx = entry.body
        marker = "*" if entry.name == current else ""
        name = f"{entry.name:<20}"
        if marker:
            name = _green(name, color_enabled)
        print(f"{marker:<8}{name}{ctx.server:<20}{ctx.authorization:<20}{ctx.cluster}")


def _print_paths(args: argparse.Namespace) -> None:
    color_enabled = _supports_color()
    if getattr(args, "config", None):
        read_path = write_path = Path(args.config).expanduser()
        search = [read_path]
    else:
        read_path, write_path = config_filenames()
        search = [read_path] if os.environ.get(CONFIG_FILE_ENV) else config_search_paths()
    print(
        f"- Config file (read): {_gray(str(read_path), color_enabled)} "
        f"(exists: {_yes_no(read_path.is_file(), color_enabled)})"
    )
    print(f"- Config file (write): {_gray(str(write_path), color_enabled)}")
    print("- Search order:")
    for p in search:
        exists = _yes_no(p.is_file(), color_enabled)
        print(f"  • {_gray(str(p), color_enabled)} (exists: {exists})")
