"""Shared builders and environment fixtures for configuration tests."""

import os
import tempfile
import types
import unittest.mock
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from optimizectl.lib.core.model import (
    Authorization,
    Cluster,
    Config,
    Context,
    Controller,
    Named,
    Server,
)


def make_config(
    servers: Sequence[str] = (),
    authorizations: Sequence[str] = (),
    clusters: Sequence[str] = (),
    controllers: Sequence[str] = (),
    contexts: Sequence[str] = (),
    **scalars: str,
) -> Config:
    """Build a config with empty bodies for each of the given names."""
    return Config(
        servers=[Named(n, Server()) for n in servers],
        authorizations=[Named(n, Authorization()) for n in authorizations],
        clusters=[Named(n, Cluster()) for n in clusters],
        controllers=[Named(n, Controller()) for n in controllers],
        contexts=[Named(n, Context()) for n in contexts],
        **scalars,
    )


def names(entries: list[Named]) -> list[str]:
    return [e.name for e in entries]


@contextmanager
def xdg_env(*, clear: bool = True) -> Iterator[types.SimpleNamespace]:
    """Point HOME and the XDG variables at a temporary directory.

    Yields a namespace with: base, home, config_home, config_dir, user_file, system_file.
    """
    with tempfile.TemporaryDirectory() as td:
        base = Path(td)
        home = base / "home"
        config_home = home / ".config"
        config_dir = base / "etc" / "xdg"
        home.mkdir(parents=True)
        env_vars = {
            "HOME": str(home),
            "XDG_CONFIG_DIRS": str(config_dir),
        }
        with unittest.mock.patch.dict(os.environ, env_vars, clear=clear):
            yield types.SimpleNamespace(
                base=base,
                home=home,
                config_home=config_home,
                config_dir=config_dir,
                user_file=config_home / "stormforge" / "config",
                system_file=config_dir / "stormforge" / "config",
            )


def write_file(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path
