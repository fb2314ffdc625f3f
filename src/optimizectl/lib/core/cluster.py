# SPDX-FileCopyrightText: 2025-2026 Jiri Vyskocil <jiri@vyskocil.com>
#
# SPDX-License-Identifier: Apache-2.0

"""Kubernetes cluster helpers: name discovery and kubectl invocation."""

import logging
import subprocess

from .defaults import DEFAULT_KUBECTL, DEFAULT_NAME
from .model import Cluster

logger = logging.getLogger(__name__)


def bootstrap_cluster_name() -> str:
    """Return the name of the cluster in the current kubeconfig context.

    This is a "bootstrap" invocation of kubectl: the configuration cannot be
    used since it is being created.  Any failure returns ``"default"``; this
    never returns an empty string.
    """
    try:
        result = subprocess.run(
            [
                DEFAULT_KUBECTL,
                "config",
                "view",
                "--minify",
                "--output",
                "jsonpath={.clusters[0].name}",
            ],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("Cluster name discovery failed: %s", e)
        return DEFAULT_NAME
    name = result.stdout.strip() if result.returncode == 0 else ""
    if not name:
        logger.debug("Cluster name discovery returned nothing (exit %s)", result.returncode)
        return DEFAULT_NAME
    return name


def kubectl_argv(cluster: Cluster, *args: str) -> list[str]:
    """Build the argv to run kubectl against *cluster*."""
    argv = [cluster.bin or DEFAULT_KUBECTL]
    if cluster.kubeconfig:
        argv += ["--kubeconfig", cluster.kubeconfig]
    if cluster.context:
        argv += ["--context", cluster.context]
    if cluster.namespace:
        argv += ["--namespace", cluster.namespace]
    argv.extend(args)
    return argv
