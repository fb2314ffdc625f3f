# SPDX-FileCopyrightText: 2025-2026 Jiri Vyskocil <jiri@vyskocil.com>
#
# SPDX-License-Identifier: Apache-2.0

"""Default resolution for a freshly loaded configuration.

Fills every field left empty after merging.  Nothing in here overwrites a
non-empty value, so resolving twice is the same as resolving once.

Order:
  1. seed empty collections
  2. server roots (from the execution environment)
  3. server endpoints (from the roots)
  4. clusters
  5. controllers
  6. contexts, then the current context
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from urllib.parse import urlsplit, urlunsplit

from .errors import (
    AmbiguousReferenceError,
    InvalidServerIdentifierError,
    UnresolvableEnvironmentError,
)
from .merge import find
from .model import Authorization, Cluster, Config, Context, Controller, Named, Server

logger = logging.getLogger(__name__)

ENVIRONMENT_PRODUCTION = "production"
ENVIRONMENT_STAGING = "staging"
ENVIRONMENT_DEVELOPMENT = "development"

DEFAULT_NAME = "default"

# (identifier, issuer, application base URL) of each deployment of the backend
SERVER_ROOTS: dict[str, tuple[str, str, str]] = {
    ENVIRONMENT_PRODUCTION: (
        "https://api.stormforge.io/",
        "https://auth.stormforge.io/",
        "https://app.stormforge.io/",
    ),
    ENVIRONMENT_STAGING: (
        "https://api.stormforge.dev/",
        "https://auth.stormforge.dev/",
        "https://app.stormforge.dev/",
    ),
    ENVIRONMENT_DEVELOPMENT: (
        "https://api.dev-1.dev.gramlabs.dev/",
        "https://auth.dev-1.dev.gramlabs.dev/",
        "https://app.dev-1.dev.gramlabs.dev/",
    ),
}

PERFORMANCE_TOKEN_ENDPOINT = "https://app.stormforger.com/optimize/oauth/tokens"
AUTH_SUCCESS_ENDPOINT = "https://docs.stormforge.io/api/auth_success/"

DEFAULT_KUBECTL = "kubectl"
DEFAULT_CONTROLLER_DEPLOYMENT = "optimize-controller-manager"
DEFAULT_CONTROLLER_NAMESPACE = "stormforge-system"


def default_string(value: str, default: str) -> str:
    """Return *value* unless it is empty, in which case return *default*."""
    return value if value else default


# ---------- URL helpers ----------


def issuer_url(identifier: str) -> str:
    """Return *identifier* as a base URL without a trailing slash.

    Identifiers with a query or fragment cannot be used as a base.
    """
    try:
        u = urlsplit(identifier)
    except ValueError as e:
        raise InvalidServerIdentifierError(identifier, str(e)) from e
    if u.query or u.fragment:
        raise InvalidServerIdentifierError(identifier, "query and fragment are not allowed")
    return urlunsplit((u.scheme, u.netloc, u.path.rstrip("/"), "", ""))


def well_known_uri(base: str, name: str) -> str:
    """Insert ``/.well-known/<name>`` between the host and the path of *base* (RFC 8615)."""
    u = urlsplit(base)
    path = "/.well-known/" + name + u.path.rstrip("/")
    return urlunsplit((u.scheme, u.netloc, path, "", ""))


def _join_url_path(base: str, segment: str) -> str:
    u = urlsplit(base)
    return urlunsplit((u.scheme, u.netloc, posixpath.join(u.path, segment), u.query, u.fragment))


# ---------- Servers ----------


def default_server_roots(env: str, srv: Server) -> None:
    """Fill the identifier, issuer and application base URL for *env*.

    An empty *env* means production.
    """
    roots = SERVER_ROOTS.get(env or ENVIRONMENT_PRODUCTION)
    if roots is None:
        raise UnresolvableEnvironmentError(env)
    identifier, issuer, base_url = roots
    srv.identifier = default_string(srv.identifier, identifier)
    srv.authorization.issuer = default_string(srv.authorization.issuer, issuer)
    srv.application.base_url = default_string(srv.application.base_url, base_url)


def default_server_endpoints(srv: Server) -> None:
    """Derive the remaining endpoints from the identifier and the issuer."""
    api = issuer_url(srv.identifier)
    issuer = issuer_url(srv.authorization.issuer)

    a = srv.api
    a.applications_endpoint = default_string(a.applications_endpoint, api + "/v2/applications/")
    a.experiments_endpoint = default_string(a.experiments_endpoint, api + "/v1/experiments/")
    a.accounts_endpoint = default_string(a.accounts_endpoint, api + "/v1/accounts/")
    a.performance_token_endpoint = default_string(
        a.performance_token_endpoint, PERFORMANCE_TOKEN_ENDPOINT
    )

    az = srv.authorization
    az.authorization_endpoint = default_string(az.authorization_endpoint, issuer + "/authorize")
    az.token_endpoint = default_string(az.token_endpoint, issuer + "/oauth/token")
    az.revocation_endpoint = default_string(az.revocation_endpoint, issuer + "/oauth/revoke")
    az.device_authorization_endpoint = default_string(
        az.device_authorization_endpoint, issuer + "/oauth/device/code"
    )
    az.jwks_uri = default_string(az.jwks_uri, well_known_uri(issuer, "jwks.json"))

    srv.application.auth_success_endpoint = default_string(
        srv.application.auth_success_endpoint, AUTH_SUCCESS_ENDPOINT
    )

    # Registration services live under the accounts API
    try:
        clients = _join_url_path(a.accounts_endpoint, "clients")
        robots = _join_url_path(a.accounts_endpoint, "robots")
    except ValueError:
        clients = api + "/v1/accounts/clients"
        robots = api + "/v1/accounts/robots"
    az.registration_endpoint = default_string(az.registration_endpoint, clients)
    a.registry_registration_endpoint = default_string(a.registry_registration_endpoint, robots)


# ---------- Implied names ----------


def implied_name(
    value: str,
    collection: list[Named],
    *,
    kind: str,
    owner: str,
    own_name: str | None = None,
    aux_name: str | None = None,
    fallbacks: tuple[str, ...] = (DEFAULT_NAME,),
) -> str:
    """Resolve an empty reference against *collection*.

    Strategies, first match wins:
      a. an entry named *own_name* (the entity holding the reference)
      b. an entry named *aux_name*
      c. the only entry of the collection
      d. an entry named after one of *fallbacks*
    """
    if value:
        return value
    if own_name is not None and find(collection, own_name) is not None:
        return own_name
    if aux_name and find(collection, aux_name) is not None:
        return aux_name
    if len(collection) == 1:
        return collection[0].name
    for name in fallbacks:
        if find(collection, name) is not None:
            return name
    raise AmbiguousReferenceError(kind, owner)


@dataclass
class Defaults:
    """Applies defaults to *cfg* for the execution environment *env*.

    *cluster_name* is the discovered name of the current Kubernetes cluster
    (``"default"`` when it is unknown).
    """

    cfg: Config
    env: str
    cluster_name: str = DEFAULT_NAME

    def apply(self) -> Config:
        self.add_default_objects()
        self.apply_server_defaults()
        # No defaults for authorizations
        self.apply_cluster_defaults()
        self.apply_controller_defaults()
        self.apply_context_defaults()
        return self.cfg

    @property
    def _cluster_fallbacks(self) -> tuple[str, ...]:
        if self.cluster_name == DEFAULT_NAME:
            return (DEFAULT_NAME,)
        return (self.cluster_name, DEFAULT_NAME)

    def add_default_objects(self) -> None:
        cfg = self.cfg
        if not cfg.servers:
            cfg.servers.append(Named(DEFAULT_NAME, Server()))
        if not cfg.authorizations:
            cfg.authorizations.append(Named(DEFAULT_NAME, Authorization()))
        if not cfg.clusters:
            logger.debug("Seeding cluster %r", self.cluster_name)
            cfg.clusters.append(Named(self.cluster_name, Cluster()))
        if not cfg.controllers:
            cfg.controllers.append(Named(self.cluster_name, Controller()))
        if not cfg.contexts:
            cfg.contexts.append(Named(DEFAULT_NAME, Context()))

    def apply_server_defaults(self) -> None:
        for entry in self.cfg.servers:
            default_server_roots(self.env, entry.body)
            default_server_endpoints(entry.body)

    def apply_cluster_defaults(self) -> None:
        for entry in self.cfg.clusters:
            cstr = entry.body
            cstr.bin = default_string(cstr.bin, DEFAULT_KUBECTL)
            cstr.controller = implied_name(
                cstr.controller,
                self.cfg.controllers,
                kind="controller",
                owner=f"cluster: {entry.name}",
                own_name=entry.name,
                fallbacks=self._cluster_fallbacks,
            )

    def apply_controller_defaults(self) -> None:
        for entry in self.cfg.controllers:
            ctrl = entry.body
            ctrl.deployment_name = default_string(
                ctrl.deployment_name, DEFAULT_CONTROLLER_DEPLOYMENT
            )
            ctrl.namespace = default_string(ctrl.namespace, DEFAULT_CONTROLLER_NAMESPACE)

    def apply_context_defaults(self) -> None:
        cfg = self.cfg
        for entry in cfg.contexts:
            ctx = entry.body
            owner = f"context: {entry.name}"
            ctx.server = implied_name(
                ctx.server, cfg.servers, kind="server", owner=owner, own_name=entry.name
            )
            ctx.authorization = implied_name(
                ctx.authorization,
                cfg.authorizations,
                kind="authorization",
                owner=owner,
                own_name=entry.name,
                aux_name=ctx.server,
            )
            ctx.cluster = implied_name(
                ctx.cluster,
                cfg.clusters,
                kind="cluster",
                owner=owner,
                own_name=entry.name,
                fallbacks=self._cluster_fallbacks,
            )

        cfg.current_context = implied_name(
            cfg.current_context, cfg.contexts, kind="context", owner="current context"
        )


def resolve_defaults(cfg: Config, env: str, cluster_name: str = DEFAULT_NAME) -> Config:
    """Fill every empty field of *cfg* in place and return it."""
    return Defaults(cfg=cfg, env=env, cluster_name=cluster_name).apply()
