# SPDX-FileCopyrightText: 2025-2026 Jiri Vyskocil <jiri@vyskocil.com>
#
# SPDX-License-Identifier: Apache-2.0

"""Configuration changes.

A change is a callable taking the configuration and returning it after
modification, or raising a :class:`~.errors.ConfigError`.  Changes are
recorded by the session and replayed against the file when it is written,
so they must only depend on their arguments and the configuration they
receive.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable

from .defaults import (
    ENVIRONMENT_DEVELOPMENT,
    ENVIRONMENT_PRODUCTION,
    ENVIRONMENT_STAGING,
    default_server_roots,
)
from .errors import InvalidEnvironmentError, UnknownPropertyError, UnknownReferenceError
from .merge import find, find_or_create, merge_config, merge_string
from .model import (
    Authorization,
    Config,
    Context,
    Controller,
    ControllerEnvVar,
    Named,
    Server,
    TokenCredential,
)

logger = logging.getLogger(__name__)

Change = Callable[[Config], Config]

_ENVIRONMENT_ALIASES = {
    "production": ENVIRONMENT_PRODUCTION,
    "prod": ENVIRONMENT_PRODUCTION,
    "staging": ENVIRONMENT_STAGING,
    "stage": ENVIRONMENT_STAGING,
    "development": ENVIRONMENT_DEVELOPMENT,
    "dev": ENVIRONMENT_DEVELOPMENT,
}


def apply_changes(cfg: Config, changes: Iterable[Change]) -> Config:
    """Apply *changes* in order to a copy of *cfg* and return the copy.

    The first failing change aborts the whole batch; *cfg* itself is never
    modified.
    """
    result = copy.deepcopy(cfg)
    for i, change in enumerate(changes):
        logger.debug("Applying change %d (%s)", i, getattr(change, "__qualname__", change))
        result = change(result)
    return result


def normalize_environment(value: str) -> str:
    """Return the canonical environment name for *value* (empty stays empty)."""
    if not value:
        return ""
    env = _ENVIRONMENT_ALIASES.get(value.lower())
    if env is None:
        raise InvalidEnvironmentError(value)
    return env


# ---------- Change constructors ----------


def save_server(name: str, srv: Server, env: str) -> Change:
    """Persist *srv* under *name*, merging into an existing server of that name.

    A same-named authorization is created if missing, and the server roots
    of *env* are captured so the entry keeps pointing at that environment.
    """

    def change(cfg: Config) -> Config:
        merge_config(
            cfg,
            Config(
                servers=[Named(name, srv)],
                authorizations=[Named(name, Authorization())],
            ),
        )
        default_server_roots(env, find(cfg.servers, name))
        return cfg

    return change


def save_token(name: str, token: TokenCredential) -> Change:
    """Store *token* as the credential of the named authorization (created if missing)."""

    def change(cfg: Config) -> Config:
        az = find_or_create(cfg.authorizations, name, Authorization)
        az.set_token(
            token.access_token,
            token_type=token.token_type,
            refresh_token=token.refresh_token,
            expiry=token.expiry,
        )
        return cfg

    return change


def save_client_registration(
    name: str, registration_client_uri: str, registration_access_token: str
) -> Change:
    """Store a client registration response on the named controller (created if missing)."""

    def change(cfg: Config) -> Config:
        ctrl = find_or_create(cfg.controllers, name, Controller)
        ctrl.registration_client_uri = merge_string(
            ctrl.registration_client_uri, registration_client_uri
        )
        ctrl.registration_access_token = merge_string(
            ctrl.registration_access_token, registration_access_token
        )
        return cfg

    return change


def apply_current_context(
    context_name: str, server: str = "", authorization: str = "", cluster: str = ""
) -> Change:
    """Update the named context (created if missing) and make it the current context."""

    def change(cfg: Config) -> Config:
        ctx = find_or_create(cfg.contexts, context_name, Context)
        cfg.current_context = merge_string(cfg.current_context, context_name)
        ctx.server = merge_string(ctx.server, server)
        ctx.authorization = merge_string(ctx.authorization, authorization)
        ctx.cluster = merge_string(ctx.cluster, cluster)
        return cfg

    return change


def set_execution_environment(value: str) -> Change:
    """Set the execution environment from a case-insensitive alias.

    Production is the implicit default so it is stored as an empty value;
    an empty alias unsets the environment.
    """

    def change(cfg: Config) -> Config:
        env = normalize_environment(value)
        cfg.environment = "" if env == ENVIRONMENT_PRODUCTION else env
        return cfg

    return change


def set_property(name: str, value: str) -> Change:
    """Set a single property using dotted notation.

    Supported names::

        env
        current-context
        cluster.<name>.(context|bin|controller)
        controller.<name>.env.<variable>
        context.<name>.(server|authorization|cluster)
    """
    if name == "env":
        return set_execution_environment(value)

    def change(cfg: Config) -> Config:
        path = name.split(".")
        match path:
            case ["current-context"]:
                cfg.current_context = value
                return cfg
            case ["cluster", cluster_name, prop]:
                _set_cluster_property(cfg, cluster_name, prop, value)
                return cfg
            case ["controller", controller_name, "env", variable]:
                ctrl = Controller(env=[ControllerEnvVar(variable, value)])
                merge_config(cfg, Config(controllers=[Named(controller_name, ctrl)]))
                return cfg
            case ["context", context_name, prop]:
                _set_context_property(cfg, context_name, prop, value)
                return cfg
        raise UnknownPropertyError(name)

    return change


def _set_cluster_property(cfg: Config, entity: str, prop: str, value: str) -> None:
    section = "cluster"
    cstr = find(cfg.clusters, entity)
    if cstr is None:
        raise UnknownReferenceError(section, entity)
    match prop:
        case "context":
            cstr.context = value
        case "bin":
            cstr.bin = value
        case "controller":
            cstr.controller = value
        case _:
            raise UnknownPropertyError(f"{section}.{entity}.{prop}")


def _set_context_property(cfg: Config, entity: str, prop: str, value: str) -> None:
    section = "context"
    ctx = find(cfg.contexts, entity)
    if ctx is None:
        raise UnknownReferenceError(section, entity)
    match prop:
        case "server":
            if find(cfg.servers, value) is None:
                raise UnknownReferenceError(prop, value)
            ctx.server = value
        case "authorization":
            if find(cfg.authorizations, value) is None:
                raise UnknownReferenceError(prop, value)
            ctx.authorization = value
        case "cluster":
            if find(cfg.clusters, value) is None:
                raise UnknownReferenceError(prop, value)
            ctx.cluster = value
        case _:
            raise UnknownPropertyError(f"{section}.{entity}.{prop}")
