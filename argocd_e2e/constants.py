# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Constants, pinned dependency loading, and dep_value helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_dependencies() -> dict:
    """Load pinned versions from dependencies.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    deps_file = Path(__file__).resolve().parent / "dependencies.yaml"
    with open(deps_file) as f:
        return yaml.safe_load(f)


DEPENDENCIES = load_dependencies()


def dep_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the DEPENDENCIES dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = DEPENDENCIES
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


ENV_PREFIX = "ARGOCD_E2E_"

# -- Cluster defaults --
DEFAULT_CLUSTER_NAME = "argocd-test"
DEFAULT_K3S_IMAGE = dep_value("k3s", "image", default="rancher/k3s:v1.31.4-k3s1")
DEFAULT_SERVERS = 1
DEFAULT_AGENTS = 0
DEFAULT_CLUSTER_CREATE_MAX_RETRIES = 3
CLUSTER_CREATE_RETRY_WAIT_SECONDS = 10
CLUSTER_TIMEOUT = "120s"
K3D_CONTEXT_PREFIX = "k3d-"

# -- ArgoCD defaults --
DEFAULT_ARGOCD_VERSION = dep_value("argocd", "version", default="v2.13.2")
DEFAULT_ARGOCD_NAMESPACE = "argocd"
DEFAULT_MANIFEST_URL_TEMPLATE = dep_value(
    "argocd", "manifest_url_template",
    default="https://raw.githubusercontent.com/argoproj/argo-cd/{version}/manifests/install.yaml",
)
DEFAULT_WAIT_TIMEOUT_SECONDS = 300

# -- Command execution --
# Headroom given to the kubectl process beyond its own --timeout.
COMMAND_TIMEOUT_GRACE_SECONDS = 30
DEFAULT_COMMAND_TIMEOUT_SECONDS = 120
CANCEL_POLL_INTERVAL_SECONDS = 0.5

# -- Report --
REPORT_BANNER = "Integration Test Successful!"
SECTION_DEPLOYMENT = "Deployment Output"
SECTION_WAIT = "Wait Output"
SECTION_PODS = "ArgoCD Pods"
