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

"""Integration test pipeline: start k3s, install ArgoCD, verify readiness."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

from rich.panel import Panel

from argocd_e2e import console, logger
from argocd_e2e.config import ArgoCDConfig, TestRunConfig
from argocd_e2e.constants import COMMAND_TIMEOUT_GRACE_SECONDS
from argocd_e2e.context import RunContext, background
from argocd_e2e.errors import (
    ClusterStartError,
    ManifestApplyError,
    NamespaceCreateError,
    PipelineError,
    ReadinessError,
    StatusQueryError,
)
from argocd_e2e.provider import ClusterProvider
from argocd_e2e.report import TestReport

T = TypeVar("T")


class PipelineState(str, Enum):
    IDLE = "IDLE"
    STARTING = "STARTING"
    NAMESPACE_CREATING = "NAMESPACE_CREATING"
    MANIFEST_APPLYING = "MANIFEST_APPLYING"
    WAITING_READY = "WAITING_READY"
    COLLECTING_STATUS = "COLLECTING_STATUS"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


TERMINAL_STATES = frozenset({PipelineState.SUCCEEDED, PipelineState.FAILED})


@dataclass
class PipelineRun:
    """Progress of one pipeline invocation.

    Attributes:
        state: Current state.
        history: Every state entered, in order, starting with IDLE.
        failed_step: State the run was in when it failed, or None.
        error: The raised pipeline error, or None.
    """

    state: PipelineState = PipelineState.IDLE
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])
    failed_step: PipelineState | None = None
    error: PipelineError | None = None

    def transition(self, state: PipelineState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"pipeline already finished in state {self.state.value}")
        logger.info("Pipeline state %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def fail(self, error: PipelineError) -> None:
        self.failed_step = self.state
        self.error = error
        self.transition(PipelineState.FAILED)


# ============================================================================
# kubectl commands
# ============================================================================

def namespace_command(namespace: str) -> str:
    return f"create namespace {namespace}"


def apply_command(namespace: str, manifest_url: str) -> str:
    return f"apply -n {namespace} -f {manifest_url}"


def wait_command(namespace: str, timeout_seconds: int) -> str:
    return f"wait --for=condition=available --timeout={timeout_seconds}s --all deployments -n {namespace}"


def status_command(namespace: str) -> str:
    return f"get pods -n {namespace}"


# ============================================================================
# Pipeline
# ============================================================================

def _run_step(
    run: PipelineRun,
    ctx: RunContext,
    state: PipelineState,
    title: str,
    error_cls: type[PipelineError],
    action: Callable[[], T],
) -> T:
    """Enter *state*, run *action*, and wrap any failure in *error_cls*.

    Raises:
        PipelineError: The *error_cls* wrapping the underlying failure.
    """
    run.transition(state)
    console.print(Panel.fit(title, style="bold blue"))
    try:
        ctx.check()
        return action()
    except Exception as e:
        err = error_cls(e)
        run.fail(err)
        logger.error("Step %s failed: %s", state.value, e)
        raise err from e


def run_integration_test(
    config: TestRunConfig,
    provider: ClusterProvider,
    *,
    settings: ArgoCDConfig | None = None,
    ctx: RunContext | None = None,
    run: PipelineRun | None = None,
) -> TestReport:
    """Start a cluster, install ArgoCD, wait for it, and report pod status.

    Steps run strictly in order and the first failure aborts the run; no
    step is retried and nothing is rolled back.

    Args:
        config: Run configuration; an empty cluster name selects the default.
        provider: Cluster provider that starts the cluster and runs commands.
        settings: ArgoCD version, namespace, manifest URL and wait timeout.
        ctx: Cancellation/deadline context passed into every step.
        run: Optional progress tracker, updated in place.

    Returns:
        The report for a fully successful run.

    Raises:
        ClusterStartError: If the cluster cannot be started.
        NamespaceCreateError: If the ArgoCD namespace cannot be created.
        ManifestApplyError: If the install manifest cannot be applied.
        ReadinessError: If the deployments do not become available in time.
        StatusQueryError: If the pod listing fails.
    """
    config = config.effective()
    settings = settings if settings is not None else ArgoCDConfig()
    ctx = ctx if ctx is not None else background()
    run = run if run is not None else PipelineRun()
    namespace = settings.namespace
    cluster_name = config.cluster_name

    handle = _run_step(
        run, ctx, PipelineState.STARTING,
        f"Starting k3s cluster '{cluster_name}'", ClusterStartError,
        lambda: provider.start(ctx, cluster_name),
    )
    _run_step(
        run, ctx, PipelineState.NAMESPACE_CREATING,
        f"Creating namespace '{namespace}'", NamespaceCreateError,
        lambda: provider.exec_command(ctx, handle, namespace_command(namespace)),
    )
    manifest_url = settings.manifest_url()
    deploy_output = _run_step(
        run, ctx, PipelineState.MANIFEST_APPLYING,
        f"Installing ArgoCD {settings.argocd_version}", ManifestApplyError,
        lambda: provider.exec_command(ctx, handle, apply_command(namespace, manifest_url)),
    )
    wait_output = _run_step(
        run, ctx, PipelineState.WAITING_READY,
        f"Waiting for ArgoCD deployments (timeout {settings.wait_timeout_seconds}s)", ReadinessError,
        lambda: provider.exec_command(
            ctx, handle, wait_command(namespace, settings.wait_timeout_seconds),
            timeout=settings.wait_timeout_seconds + COMMAND_TIMEOUT_GRACE_SECONDS,
        ),
    )
    pod_status = _run_step(
        run, ctx, PipelineState.COLLECTING_STATUS,
        "Collecting ArgoCD pod status", StatusQueryError,
        lambda: provider.exec_command(ctx, handle, status_command(namespace)),
    )

    run.transition(PipelineState.SUCCEEDED)
    console.print("[green]\u2705 ArgoCD is running[/green]")
    return TestReport(
        cluster_name=cluster_name,
        deploy_output=deploy_output,
        wait_output=wait_output,
        pod_status=pod_status,
    )
