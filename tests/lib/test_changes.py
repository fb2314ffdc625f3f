# SPDX-FileCopyrightText: 2025-2026 Jiri Vyskocil <jiri@vyskocil.com>
#
# SPDX-License-Identifier: Apache-2.0

"""Tests for configuration changes and the property setter."""

import copy
import unittest
from datetime import UTC, datetime

from config_helpers import make_config, names

from optimizectl.lib.core.changes import (
    apply_changes,
    apply_current_context,
    normalize_environment,
    save_client_registration,
    save_server,
    save_token,
    set_execution_environment,
    set_property,
)
from optimizectl.lib.core.errors import (
    InvalidEnvironmentError,
    UnknownPropertyError,
    UnknownReferenceError,
)
from optimizectl.lib.core.merge import find
from optimizectl.lib.core.model import (
    Authorization,
    ClientCredential,
    Config,
    ControllerEnvVar,
    Named,
    Server,
    TokenCredential,
)


class ApplyChangesTests(unittest.TestCase):
    def test_input_never_modified(self) -> None:
        cfg = make_config(contexts=["a"])
        before = copy.deepcopy(cfg)
        out = apply_changes(cfg, [set_property("current-context", "a")])
        self.assertEqual(out.current_context, "a")
        self.assertEqual(cfg, before)

    def test_failing_change_aborts_batch(self) -> None:
        cfg = make_config(clusters=["c"])
        before = copy.deepcopy(cfg)
        with self.assertRaises(UnknownReferenceError):
            apply_changes(
                cfg,
                [
                    set_property("cluster.c.bin", "/opt/kubectl"),
                    set_property("cluster.missing.bin", "x"),
                ],
            )
        self.assertEqual(cfg, before)

    def test_changes_applied_in_order(self) -> None:
        out = apply_changes(
            Config(),
            [set_property("current-context", "one"), set_property("current-context", "two")],
        )
        self.assertEqual(out.current_context, "two")


class EnvironmentTests(unittest.TestCase):
    def test_aliases(self) -> None:
        cases = {
            "production": "production",
            "PROD": "production",
            "Staging": "staging",
            "stage": "staging",
            "DEV": "development",
            "development": "development",
            "": "",
        }
        for value, expected in cases.items():
            with self.subTest(value=value):
                self.assertEqual(normalize_environment(value), expected)

    def test_production_stored_empty(self) -> None:
        out = apply_changes(Config(environment="staging"), [set_execution_environment("PROD")])
        self.assertEqual(out.environment, "")

    def test_staging_stored(self) -> None:
        out = apply_changes(Config(), [set_execution_environment("stage")])
        self.assertEqual(out.environment, "staging")

    def test_invalid(self) -> None:
        with self.assertRaises(InvalidEnvironmentError) as cm:
            apply_changes(Config(), [set_execution_environment("qa")])
        self.assertIn("qa", str(cm.exception))

    def test_empty_alias_unsets(self) -> None:
        out = apply_changes(Config(environment="staging"), [set_execution_environment("")])
        self.assertEqual(out.environment, "")

    def test_env_property(self) -> None:
        out = apply_changes(Config(), [set_property("env", "dev")])
        self.assertEqual(out.environment, "development")


class SetPropertyTests(unittest.TestCase):
    def setUp(self) -> None:
        self.cfg = make_config(
            servers=["s"], authorizations=["a"], clusters=["c"], contexts=["x"]
        )

    def _apply(self, name: str, value: str) -> Config:
        return apply_changes(self.cfg, [set_property(name, value)])

    def test_current_context(self) -> None:
        self.assertEqual(self._apply("current-context", "x").current_context, "x")

    def test_cluster_properties(self) -> None:
        for prop, value in (("context", "kind"), ("bin", "/opt/kubectl"), ("controller", "k")):
            with self.subTest(prop=prop):
                out = self._apply(f"cluster.c.{prop}", value)
                self.assertEqual(getattr(find(out.clusters, "c"), prop), value)

    def test_context_properties(self) -> None:
        out = self._apply("context.x.server", "s")
        self.assertEqual(find(out.contexts, "x").server, "s")
        out = self._apply("context.x.authorization", "a")
        self.assertEqual(find(out.contexts, "x").authorization, "a")
        out = self._apply("context.x.cluster", "c")
        self.assertEqual(find(out.contexts, "x").cluster, "c")

    def test_unknown_entity(self) -> None:
        with self.assertRaises(UnknownReferenceError) as cm:
            self._apply("cluster.nope.bin", "x")
        self.assertEqual((cm.exception.kind, cm.exception.name), ("cluster", "nope"))
        with self.assertRaises(UnknownReferenceError):
            self._apply("context.nope.server", "s")

    def test_context_reference_must_exist(self) -> None:
        with self.assertRaises(UnknownReferenceError) as cm:
            self._apply("context.x.server", "missing")
        self.assertEqual((cm.exception.kind, cm.exception.name), ("server", "missing"))

    def test_unknown_field(self) -> None:
        with self.assertRaises(UnknownPropertyError) as cm:
            self._apply("cluster.c.namespace", "ns")
        self.assertEqual(cm.exception.name, "cluster.c.namespace")
        with self.assertRaises(UnknownPropertyError):
            self._apply("context.x.namespace", "ns")

    def test_unknown_path(self) -> None:
        for name in ("server.s.identifier", "cluster.c", "controller.k.namespace", "", "foo"):
            with self.subTest(name=name):
                with self.assertRaises(UnknownPropertyError) as cm:
                    self._apply(name, "v")
                self.assertEqual(cm.exception.name, name)

    def test_controller_env_creates_controller(self) -> None:
        out = self._apply("controller.k.env.FOO", "bar")
        self.assertEqual(names(out.controllers), ["k"])
        self.assertEqual(find(out.controllers, "k").env, [ControllerEnvVar("FOO", "bar")])

    def test_controller_env_updates_variable(self) -> None:
        out = apply_changes(
            self.cfg,
            [
                set_property("controller.k.env.FOO", "bar"),
                set_property("controller.k.env.BAZ", "1"),
                set_property("controller.k.env.FOO", "qux"),
            ],
        )
        self.assertEqual(
            find(out.controllers, "k").env,
            [ControllerEnvVar("FOO", "qux"), ControllerEnvVar("BAZ", "1")],
        )


class SaveTests(unittest.TestCase):
    def test_save_server_creates_authorization_and_roots(self) -> None:
        out = apply_changes(
            Config(), [save_server("s", Server(identifier="https://api.example.com/"), "staging")]
        )
        srv = find(out.servers, "s")
        self.assertEqual(srv.identifier, "https://api.example.com/")
        self.assertEqual(srv.authorization.issuer, "https://auth.stormforge.dev/")
        self.assertEqual(srv.application.base_url, "https://app.stormforge.dev/")
        self.assertEqual(names(out.authorizations), ["s"])
        # Endpoints are left to the defaults
        self.assertEqual(srv.api.applications_endpoint, "")

    def test_save_server_keeps_existing_credential(self) -> None:
        az = Authorization()
        az.set_token("tok")
        cfg = Config(authorizations=[Named("s", az)])
        out = apply_changes(cfg, [save_server("s", Server(), "production")])
        self.assertEqual(names(out.authorizations), ["s"])
        self.assertEqual(find(out.authorizations, "s").credential.access_token, "tok")

    def test_save_token_replaces_client(self) -> None:
        az = Authorization(ClientCredential("id", "secret"))
        cfg = Config(authorizations=[Named("a", az)])
        expiry = datetime(2030, 1, 1, tzinfo=UTC)
        token = TokenCredential("tok", "bearer", "ref", expiry)
        out = apply_changes(cfg, [save_token("a", token)])
        self.assertEqual(find(out.authorizations, "a").credential, token)

    def test_save_token_creates_authorization(self) -> None:
        out = apply_changes(Config(), [save_token("new", TokenCredential("tok"))])
        self.assertEqual(names(out.authorizations), ["new"])

    def test_save_client_registration(self) -> None:
        cfg = make_config(controllers=["k"])
        out = apply_changes(
            cfg, [save_client_registration("k", "https://api.example.com/clients/1", "secret")]
        )
        ctrl = find(out.controllers, "k")
        self.assertEqual(ctrl.registration_client_uri, "https://api.example.com/clients/1")
        self.assertEqual(ctrl.registration_access_token, "secret")
        out = apply_changes(Config(), [save_client_registration("other", "u", "t")])
        self.assertEqual(names(out.controllers), ["other"])

    def test_apply_current_context(self) -> None:
        cfg = make_config(contexts=["x"])
        cfg.contexts[0].body.cluster = "c"
        out = apply_changes(cfg, [apply_current_context("x", server="s")])
        ctx = find(out.contexts, "x")
        self.assertEqual((ctx.server, ctx.authorization, ctx.cluster), ("s", "", "c"))
        self.assertEqual(out.current_context, "x")

        out = apply_changes(out, [apply_current_context("y", cluster="c")])
        self.assertEqual(names(out.contexts), ["x", "y"])
        self.assertEqual(out.current_context, "y")
