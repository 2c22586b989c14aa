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

"""Configuration classes and the per-run test configuration."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from argocd_e2e.constants import (
    CLUSTER_TIMEOUT,
    DEFAULT_AGENTS,
    DEFAULT_ARGOCD_NAMESPACE,
    DEFAULT_ARGOCD_VERSION,
    DEFAULT_CLUSTER_CREATE_MAX_RETRIES,
    DEFAULT_CLUSTER_NAME,
    DEFAULT_K3S_IMAGE,
    DEFAULT_MANIFEST_URL_TEMPLATE,
    DEFAULT_SERVERS,
    DEFAULT_WAIT_TIMEOUT_SECONDS,
    ENV_PREFIX,
)


# ============================================================================
# Configuration classes
# ============================================================================

class K3sConfig(BaseSettings):
    """k3s cluster configuration, auto-loaded from ARGOCD_E2E_* env vars.

    Attributes:
        k3s_image: K3s Docker image to use.
        servers: Number of k3s server nodes.
        agents: Number of k3s agent nodes.
        max_retries: Maximum cluster creation attempts made by the provider.
        create_timeout: Timeout passed to ``k3d cluster create --timeout``.
    """

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="ignore")

    k3s_image: str = DEFAULT_K3S_IMAGE
    servers: int = Field(default=DEFAULT_SERVERS, ge=1, le=5)
    agents: int = Field(default=DEFAULT_AGENTS, ge=0, le=20)
    max_retries: int = Field(default=DEFAULT_CLUSTER_CREATE_MAX_RETRIES, ge=1, le=10)
    create_timeout: str = Field(default=CLUSTER_TIMEOUT, pattern=r"^\d+[smh]$")


class ArgoCDConfig(BaseSettings):
    """ArgoCD install settings, auto-loaded from ARGOCD_E2E_* env vars.

    Attributes:
        argocd_version: Pinned ArgoCD release tag.
        namespace: Namespace reserved for the ArgoCD workload.
        manifest_url_template: Install manifest URL with a ``{version}`` placeholder.
        wait_timeout_seconds: Upper bound for the deployment readiness wait.
    """

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="ignore")

    argocd_version: str = Field(default=DEFAULT_ARGOCD_VERSION, pattern=r"^v[\d.]+(-[\w.]+)?$")
    namespace: str = DEFAULT_ARGOCD_NAMESPACE
    manifest_url_template: str = DEFAULT_MANIFEST_URL_TEMPLATE
    wait_timeout_seconds: int = Field(default=DEFAULT_WAIT_TIMEOUT_SECONDS, ge=1)

    def manifest_url(self) -> str:
        """Interpolate the pinned version into the manifest URL template."""
        return self.manifest_url_template.format(version=self.argocd_version)


# ============================================================================
# Per-run configuration
# ============================================================================

@dataclass(frozen=True)
class TestRunConfig:
    """Input for one integration test run.

    Attributes:
        cluster_name: Requested cluster name; empty means the default name.
    """

    __test__ = False

    cluster_name: str = ""

    def effective(self) -> TestRunConfig:
        """Return a copy with an empty cluster name replaced by the default."""
        if self.cluster_name:
            return self
        return TestRunConfig(cluster_name=DEFAULT_CLUSTER_NAME)
