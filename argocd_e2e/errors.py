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

"""Error types raised by cluster providers and the pipeline."""

from __future__ import annotations


# ============================================================================
# Provider errors
# ============================================================================

class ProviderError(RuntimeError):
    """Base class for failures reported by a cluster provider."""


class CommandError(ProviderError):
    """A command issued against the cluster exited non-zero."""

    def __init__(self, command: str, exit_code: int | None, stderr: str = "") -> None:
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr.strip()
        detail = self.stderr or f"exit code {exit_code}"
        super().__init__(f"'{command}' failed: {detail}")


class RunCancelledError(ProviderError):
    """The run context was cancelled or its deadline passed."""


# ============================================================================
# Pipeline errors
# ============================================================================

class PipelineError(Exception):
    """A pipeline step failed.

    Subclasses fix ``step`` (the name of the state the run was in) and
    ``description`` (the stage message). The underlying provider error is kept
    on ``cause`` and chained as ``__cause__``.
    """

    step: str = ""
    description: str = "integration test failed"

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"{self.description}: {cause}")


class ClusterStartError(PipelineError):
    step = "STARTING"
    description = "failed to start k3s server"


class NamespaceCreateError(PipelineError):
    step = "NAMESPACE_CREATING"
    description = "failed to create namespace"


class ManifestApplyError(PipelineError):
    step = "MANIFEST_APPLYING"
    description = "failed to install ArgoCD"


class ReadinessError(PipelineError):
    """Raised for both a timed-out and an errored readiness wait."""

    step = "WAITING_READY"
    description = "ArgoCD failed to become ready"


ReadinessTimeoutOrFailureError = ReadinessError


class StatusQueryError(PipelineError):
    step = "COLLECTING_STATUS"
    description = "failed to get ArgoCD status"
