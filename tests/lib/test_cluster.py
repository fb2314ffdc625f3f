# SPDX-FileCopyrightText: 2025-2026 Jiri Vyskocil <jiri@vyskocil.com>
#
# SPDX-License-Identifier: Apache-2.0

import subprocess
import unittest
import unittest.mock

from optimizectl.lib.core.cluster import bootstrap_cluster_name, kubectl_argv
from optimizectl.lib.core.model import Cluster


class BootstrapClusterNameTests(unittest.TestCase):
    def _run(self, **kwargs):
        return unittest.mock.patch("optimizectl.lib.core.cluster.subprocess.run", **kwargs)

    def test_name_from_kubectl(self) -> None:
        result = subprocess.CompletedProcess([], 0, stdout="kind-kind\n", stderr="")
        with self._run(return_value=result) as run:
            self.assertEqual(bootstrap_cluster_name(), "kind-kind")
        argv = run.call_args.args[0]
        self.assertEqual(argv[:4], ["kubectl", "config", "view", "--minify"])

    def test_failures_fall_back_to_default(self) -> None:
        cases = {
            "missing binary": {"side_effect": FileNotFoundError("kubectl")},
            "timeout": {"side_effect": subprocess.TimeoutExpired("kubectl", 5)},
            "non-zero exit": {
                "return_value": subprocess.CompletedProcess([], 1, stdout="", stderr="boom")
            },
            "empty output": {
                "return_value": subprocess.CompletedProcess([], 0, stdout="  \n", stderr="")
            },
        }
        for label, kwargs in cases.items():
            with self.subTest(label):
                with self._run(**kwargs):
                    self.assertEqual(bootstrap_cluster_name(), "default")


class KubectlArgvTests(unittest.TestCase):
    def test_bare_cluster(self) -> None:
        self.assertEqual(kubectl_argv(Cluster(), "get", "pods"), ["kubectl", "get", "pods"])

    def test_all_options(self) -> None:
        cstr = Cluster(
            kubeconfig="/tmp/kubeconfig", context="kind", namespace="ns", bin="/opt/kubectl"
        )
        self.assertEqual(
            kubectl_argv(cstr, "version"),
            [
                "/opt/kubectl",
                "--kubeconfig",
                "/tmp/kubeconfig",
                "--context",
                "kind",
                "--namespace",
                "ns",
                "version",
            ],
        )
