# SPDX-FileCopyrightText: 2025-2026 Jiri Vyskocil <jiri@vyskocil.com>
#
# SPDX-License-Identifier: Apache-2.0

"""Named-collection merge.

Rules
-----
* Entries are matched by name; the first base entry with a given name is
  the one merged into, later duplicates are left alone.
* Scalars: a non-empty overlay value wins, otherwise the base value stays.
* Credentials are never merged field by field: a complete overlay
  credential replaces the base credential wholesale.
* Controller ``env`` lists merge by variable name, keeping base order and
  appending new variables in overlay order.
* Overlay-only entries are appended in overlay order.

Merging the same overlay twice gives the same result as merging it once.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from dataclasses import fields, is_dataclass
from typing import Any, TypeVar

from .model import (
    Authorization,
    ClientCredential,
    Cluster,
    Config,
    Context,
    Controller,
    ControllerEnvVar,
    Named,
    Server,
    TokenCredential,
)

T = TypeVar("T")


def merge_string(base: str, overlay: str) -> str:
    """Return *overlay* when it is non-empty, otherwise *base*."""
    return overlay if overlay else base


def _merge_fields(base: Any, overlay: Any) -> None:
    """Scalar-merge every string field of two dataclasses, recursing into nested ones."""
    for f in fields(base):
        bv = getattr(base, f.name)
        ov = getattr(overlay, f.name)
        if is_dataclass(bv):
            _merge_fields(bv, ov)
        elif isinstance(bv, str):
            setattr(base, f.name, merge_string(bv, ov))


# ---------- Merge bodies ----------


def merge_server(base: Server, overlay: Server) -> None:
    _merge_fields(base, overlay)


def merge_authorization(base: Authorization, overlay: Authorization) -> None:
    # Only a complete credential replaces the base credential
    match overlay.credential:
        case TokenCredential(access_token=token) if token:
            base.credential = copy.deepcopy(overlay.credential)
        case ClientCredential(client_id=client_id) if client_id:
            base.credential = copy.deepcopy(overlay.credential)
        case TokenCredential() | ClientCredential() | None:
            pass


def merge_cluster(base: Cluster, overlay: Cluster) -> None:
    _merge_fields(base, overlay)


def merge_env(base: list[ControllerEnvVar], overlay: list[ControllerEnvVar]) -> None:
    """Merge *overlay* variables into *base* by name (in place)."""
    idx: dict[str, str] = {}
    for var in overlay:
        idx.setdefault(var.name, var.value)
    consumed: set[str] = set()
    for var in base:
        if var.name in idx and var.name not in consumed:
            var.value = merge_string(var.value, idx[var.name])
            consumed.add(var.name)
    for var in overlay:
        if var.name not in consumed:
            base.append(ControllerEnvVar(name=var.name, value=var.value))
            consumed.add(var.name)


def merge_controller(base: Controller, overlay: Controller) -> None:
    _merge_fields(base, overlay)
    merge_env(base.env, overlay.env)


def merge_context(base: Context, overlay: Context) -> None:
    _merge_fields(base, overlay)


# ---------- Merge lists ----------


def merge_named(
    base: list[Named[T]],
    overlay: list[Named[T]],
    merge_body: Callable[[T, T], None],
) -> None:
    """Merge the *overlay* collection into *base* (in place)."""
    idx: dict[str, T] = {}
    for entry in overlay:
        idx.setdefault(entry.name, entry.body)

    consumed: set[str] = set()
    for entry in base:
        if entry.name in idx and entry.name not in consumed:
            merge_body(entry.body, idx[entry.name])
            consumed.add(entry.name)

    for entry in overlay:
        if entry.name not in consumed:
            base.append(Named(name=entry.name, body=copy.deepcopy(entry.body)))


def merge_config(base: Config, overlay: Config) -> Config:
    """Merge *overlay* into *base* in place and return *base*."""
    merge_named(base.servers, overlay.servers, merge_server)
    merge_named(base.authorizations, overlay.authorizations, merge_authorization)
    merge_named(base.clusters, overlay.clusters, merge_cluster)
    merge_named(base.controllers, overlay.controllers, merge_controller)
    merge_named(base.contexts, overlay.contexts, merge_context)
    base.current_context = merge_string(base.current_context, overlay.current_context)
    base.environment = merge_string(base.environment, overlay.environment)
    return base


# ---------- Find elements ----------


def find(entries: list[Named[T]], name: str) -> T | None:
    """Return the body of the first entry called *name*, or None."""
    for entry in entries:
        if entry.name == name:
            return entry.body
    return None


def find_or_create(entries: list[Named[T]], name: str, factory: Callable[[], T]) -> T:
    """Return the body of the first entry called *name*, appending a new one if missing."""
    body = find(entries, name)
    if body is None:
        body = factory()
        entries.append(Named(name=name, body=body))
    return body
