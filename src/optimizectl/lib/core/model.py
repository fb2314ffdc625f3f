# SPDX-FileCopyrightText: 2025-2026 Jiri Vyskocil <jiri@vyskocil.com>
#
# SPDX-License-Identifier: Apache-2.0

"""Configuration data model.

Pure data types with no filesystem or subprocess I/O.  The companion
``codec`` module converts them to and from the persisted document, and
``merge``/``defaults``/``changes`` operate on them in place.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar

T = TypeVar("T")


# ---------- Servers ----------


@dataclass
class APIServer:
    """Programmatic API endpoints of a server."""

    applications_endpoint: str = ""
    experiments_endpoint: str = ""
    accounts_endpoint: str = ""
    performance_token_endpoint: str = ""
    registry_registration_endpoint: str = ""


@dataclass
class AuthorizationServer:
    """Authorization server metadata.

    The shape is defined by RFC 8414; do not add non-standard fields here.
    """

    issuer: str = ""
    authorization_endpoint: str = ""
    token_endpoint: str = ""
    revocation_endpoint: str = ""
    registration_endpoint: str = ""
    device_authorization_endpoint: str = ""
    jwks_uri: str = ""


@dataclass
class ApplicationServer:
    """The user facing application."""

    base_url: str = ""
    auth_success_endpoint: str = ""


@dataclass
class Server:
    """How to talk to one remote API server.

    ``identifier`` is the URI of the API root; it must not carry a query or
    fragment since it is used as the base for the default endpoints.
    """

    identifier: str = ""
    api: APIServer = field(default_factory=APIServer)
    authorization: AuthorizationServer = field(default_factory=AuthorizationServer)
    application: ApplicationServer = field(default_factory=ApplicationServer)


# ---------- Credentials ----------


@dataclass
class TokenCredential:
    """A token that has already been obtained."""

    access_token: str = ""
    token_type: str = ""
    refresh_token: str = ""
    # None means the token never expires
    expiry: datetime | None = None


@dataclass
class ClientCredential:
    """A client registration used to obtain new tokens."""

    client_id: str = ""
    client_secret: str = ""
    scope: str = ""


# Exactly one variant or neither (None) is present.
Credential = TokenCredential | ClientCredential | None


@dataclass
class Authorization:
    """A named credential presented to a server."""

    credential: Credential = None

    def set_token(
        self,
        access_token: str,
        token_type: str = "",
        refresh_token: str = "",
        expiry: datetime | None = None,
    ) -> None:
        """Install a token credential, discarding any client credential."""
        self.credential = TokenCredential(
            access_token=access_token,
            token_type=token_type,
            refresh_token=refresh_token,
            expiry=expiry,
        )

    def set_client(self, client_id: str, client_secret: str = "", scope: str = "") -> None:
        """Install a client credential, discarding any token credential."""
        self.credential = ClientCredential(
            client_id=client_id, client_secret=client_secret, scope=scope
        )


# ---------- Clusters and controllers ----------


@dataclass
class Cluster:
    """A Kubernetes cluster reachable with kubectl.

    ``context`` and ``namespace`` refer to the kubeconfig, not to this
    configuration; ``controller`` is the name of a controller entry here.
    """

    kubeconfig: str = ""
    context: str = ""
    namespace: str = ""
    bin: str = ""
    controller: str = ""


@dataclass
class ControllerEnvVar:
    name: str
    value: str = ""


@dataclass
class Controller:
    """Controller deployment details for one cluster."""

    deployment_name: str = ""
    namespace: str = ""
    registration_client_uri: str = ""
    registration_access_token: str = ""
    env: list[ControllerEnvVar] = field(default_factory=list)


# ---------- Contexts ----------


@dataclass
class Context:
    """Names of the server, authorization and cluster used together."""

    server: str = ""
    authorization: str = ""
    cluster: str = ""


# ---------- Aggregate ----------


@dataclass
class Named(Generic[T]):
    """A body addressable by name inside one of the named collections."""

    name: str
    body: T


@dataclass
class Config:
    """Root configuration document.

    Names SHOULD be unique within each collection; lookups return the first
    match so later duplicates are kept but never addressed.
    """

    servers: list[Named[Server]] = field(default_factory=list)
    authorizations: list[Named[Authorization]] = field(default_factory=list)
    clusters: list[Named[Cluster]] = field(default_factory=list)
    controllers: list[Named[Controller]] = field(default_factory=list)
    contexts: list[Named[Context]] = field(default_factory=list)
    current_context: str = ""
    # Empty means production
    environment: str = ""


@dataclass
class ResolvedContext:
    """The bodies referenced by a single context."""

    name: str
    server: Server
    authorization: Authorization
    cluster: Cluster
    controller: Controller | None = None
