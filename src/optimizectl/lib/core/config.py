# SPDX-FileCopyrightText: 2025-2026 Jiri Vyskocil <jiri@vyskocil.com>
#
# SPDX-License-Identifier: Apache-2.0

"""Configuration session: loading, reading, updating and writing.

A session is built by running a chain of loaders against an empty
configuration:

  1. ``file_loader``      merges the persisted file (if any)
  2. ``override_loader``  merges the programmatic overrides
  3. extra loaders        supplied by the caller
  4. ``default_loader``   fills every remaining empty field

Changes made with :meth:`OptimizeConfig.update` apply immediately to the
in-memory configuration and are remembered; :meth:`OptimizeConfig.write`
replays them against a fresh copy of the file and rewrites it.  Defaults
and overrides are never written.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from .._util.fs import write_private_file
from .changes import Change, apply_changes, normalize_environment
from .cluster import bootstrap_cluster_name, kubectl_argv
from .codec import dump_document, load_document
from .defaults import (
    DEFAULT_CONTROLLER_NAMESPACE,
    DEFAULT_NAME,
    ENVIRONMENT_PRODUCTION,
    resolve_defaults,
)
from .errors import MalformedDocumentError, UnknownReferenceError
from .merge import find, merge_config
from .model import (
    Authorization,
    ClientCredential,
    Cluster,
    Config,
    Context,
    Controller,
    Named,
    ResolvedContext,
    Server,
)
from .paths import config_filenames

logger = logging.getLogger(__name__)

Loader = Callable[["OptimizeConfig"], None]


@dataclass
class Overrides:
    """Session-only values layered over the file; never persisted."""

    context: str = ""
    environment: str = ""
    server_identifier: str = ""
    server_issuer: str = ""
    kubeconfig: str = ""
    kube_context: str = ""
    namespace: str = ""
    credential: ClientCredential | None = None


@dataclass
class ConfigFile:
    """The data of one configuration file."""

    filename: Path
    data: Config = field(default_factory=Config)

    def read(self) -> ConfigFile:
        """Decode YAML or JSON from the file; a missing file is an empty document."""
        try:
            text = self.filename.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No configuration file at %s", self.filename)
            self.data = Config()
            return self
        except UnicodeDecodeError as e:
            raise MalformedDocumentError(
                f"configuration file is not valid UTF-8: {e.reason}", config_file=self.filename
            ) from e
        self.data = load_document(text, self.filename)
        return self

    def write(self) -> None:
        """Encode the data as YAML into the file (owner-only permissions)."""
        write_private_file(self.filename, dump_document(self.data))
        logger.info("Wrote configuration to %s", self.filename)


# ---------- Loaders ----------


def file_loader(cfg: OptimizeConfig) -> None:
    """Merge the configuration file, resolving its location if needed."""
    if cfg.filename is None:
        read_path, cfg.filename = config_filenames()
    else:
        read_path = cfg.filename
    cfg.merge(ConfigFile(read_path).read().data)


def override_loader(cfg: OptimizeConfig) -> None:
    """Merge the session overrides.

    Server, authorization and cluster overrides apply to the entries named by
    the selected context, or to the ``default`` entries.
    """
    o = cfg.overrides
    if o.environment:
        cfg.data.environment = normalize_environment(o.environment)
    if o.context:
        cfg.data.current_context = o.context

    ctx = find(cfg.data.contexts, cfg.data.current_context) or Context()
    overlay = Config()
    if o.server_identifier or o.server_issuer:
        srv = Server(identifier=o.server_identifier)
        srv.authorization.issuer = o.server_issuer
        overlay.servers.append(Named(ctx.server or DEFAULT_NAME, srv))
    if o.credential is not None:
        overlay.authorizations.append(
            Named(ctx.authorization or DEFAULT_NAME, Authorization(credential=o.credential))
        )
    if o.kubeconfig or o.kube_context or o.namespace:
        cstr = Cluster(kubeconfig=o.kubeconfig, context=o.kube_context, namespace=o.namespace)
        overlay.clusters.append(Named(ctx.cluster or DEFAULT_NAME, cstr))
    cfg.merge(overlay)


def default_loader(cfg: OptimizeConfig) -> None:
    """Fill in defaults.

    This must NEVER make changes through :meth:`OptimizeConfig.update`, the
    defaults would end up in the file.
    """
    resolve_defaults(cfg.data, cfg.environment(), cfg.cluster_name())


# ---------- Session ----------


class OptimizeConfig:
    """A loaded configuration and the changes not yet written.

    Usage::

        cfg = OptimizeConfig().load()
        cfg.update(set_property("context.default.cluster", "minikube"))
        cfg.write()
    """

    def __init__(
        self,
        filename: Path | None = None,
        overrides: Overrides | None = None,
        cluster_name: Callable[[], str] = bootstrap_cluster_name,
    ) -> None:
        # Where changes are written; resolved by file_loader when not given
        self.filename = filename
        self.overrides = overrides or Overrides()
        self.cluster_name = cluster_name
        self.data = Config()
        self._unpersisted: list[Change] = []

    def load(self, *extra: Loader) -> OptimizeConfig:
        """Run the loader chain and return this session."""
        for loader in (file_loader, override_loader, *extra, default_loader):
            loader(self)
        return self

    def merge(self, overlay: Config) -> None:
        """Merge *overlay* into the in-memory configuration without recording it."""
        merge_config(self.data, overlay)

    def update(self, change: Change) -> None:
        """Apply *change* now and remember it for :meth:`write`.

        A failing change leaves the configuration untouched.
        """
        self.data = apply_changes(self.data, [change])
        self._unpersisted.append(change)

    @property
    def pending(self) -> int:
        """Number of changes not yet written."""
        return len(self._unpersisted)

    def write(self) -> None:
        """Replay the pending changes against the file and rewrite it.

        Nothing is written unless every change succeeds.
        """
        if not self._unpersisted:
            return
        if self.filename is None:
            _, self.filename = config_filenames()
        f = ConfigFile(self.filename).read()
        f.data = apply_changes(f.data, self._unpersisted)
        f.write()
        self._unpersisted.clear()

    def environment(self) -> str:
        """Return the canonical execution environment."""
        return self.data.environment or ENVIRONMENT_PRODUCTION

    # ---------- Readers ----------

    def server(self, name: str) -> Server | None:
        return find(self.data.servers, name)

    def authorization(self, name: str) -> Authorization | None:
        return find(self.data.authorizations, name)

    def cluster(self, name: str) -> Cluster | None:
        return find(self.data.clusters, name)

    def controller(self, name: str) -> Controller | None:
        return find(self.data.controllers, name)

    def context(self, name: str) -> Context | None:
        return find(self.data.contexts, name)

    def current_context(self) -> ResolvedContext:
        """Return the bodies referenced by the current context."""
        name = self.data.current_context
        ctx = self.context(name)
        if ctx is None:
            raise UnknownReferenceError("context", name)
        srv = self.server(ctx.server)
        if srv is None:
            raise UnknownReferenceError("server", ctx.server)
        az = self.authorization(ctx.authorization)
        if az is None:
            raise UnknownReferenceError("authorization", ctx.authorization)
        cstr = self.cluster(ctx.cluster)
        if cstr is None:
            raise UnknownReferenceError("cluster", ctx.cluster)
        return ResolvedContext(
            name=name,
            server=srv,
            authorization=az,
            cluster=cstr,
            controller=self.controller(cstr.controller) if cstr.controller else None,
        )

    def minified(self) -> Config:
        """Return a copy holding only the current context and what it references."""
        rc = self.current_context()
        ctx = self.context(rc.name)
        out = Config(
            servers=[Named(ctx.server, rc.server)],
            authorizations=[Named(ctx.authorization, rc.authorization)],
            clusters=[Named(ctx.cluster, rc.cluster)],
            contexts=[Named(rc.name, ctx)],
            current_context=rc.name,
            environment=self.data.environment,
        )
        if rc.controller is not None:
            out.controllers.append(Named(rc.cluster.controller, rc.controller))
        return copy.deepcopy(out)

    def marshal(self, *, minify: bool = False, decode_jwt: bool = False) -> str:
        """Return the configuration as YAML.

        *decode_jwt* renders access tokens as their claims; the result is for
        display only and must not be written back.
        """
        data = self.minified() if minify else self.data
        return dump_document(data, decode_jwt=decode_jwt)

    # ---------- Cluster access ----------

    def system_namespace(self) -> str:
        """Namespace of the controller used by the current context's cluster."""
        ctrl = self.current_context().controller
        if ctrl is None or not ctrl.namespace:
            return DEFAULT_CONTROLLER_NAMESPACE
        return ctrl.namespace

    def kubectl(self, *args: str) -> list[str]:
        """Return the argv to run kubectl against the current context's cluster."""
        return kubectl_argv(self.current_context().cluster, *args)
