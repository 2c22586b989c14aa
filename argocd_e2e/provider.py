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

"""Cluster provider interface and the k3d-backed implementation."""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import Protocol

import docker
from rich.panel import Panel
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from argocd_e2e import console
from argocd_e2e.config import K3sConfig
from argocd_e2e.constants import CLUSTER_CREATE_RETRY_WAIT_SECONDS, DEFAULT_COMMAND_TIMEOUT_SECONDS
from argocd_e2e.context import RunContext, background
from argocd_e2e.errors import CommandError, ProviderError
from argocd_e2e.utils import kube_context_name, require_command, run_command


@dataclass(frozen=True)
class ClusterHandle:
    """Reference to a running cluster, owned by the provider that started it.

    Attributes:
        name: Cluster name as known to the provider.
        kube_context: kubeconfig context used to reach the cluster.
    """

    name: str
    kube_context: str


class ClusterProvider(Protocol):
    """Starts a cluster and runs kubectl-style commands against it."""

    def start(self, ctx: RunContext, cluster_name: str) -> ClusterHandle:
        ...

    def exec_command(
        self,
        ctx: RunContext,
        handle: ClusterHandle,
        command: str,
        timeout: float | None = DEFAULT_COMMAND_TIMEOUT_SECONDS,
    ) -> str:
        """Run *command* against the cluster and return its stdout.

        *timeout* bounds the command process; None means only the run
        context limits it.
        """


# ============================================================================
# k3d provider
# ============================================================================

class K3dClusterProvider:
    """Cluster provider that runs k3s in Docker via the k3d CLI.

    Commands are kubectl argument strings (``get pods -n argocd``) executed
    against the cluster's k3d kubeconfig context.
    """

    def __init__(self, k3s_cfg: K3sConfig | None = None) -> None:
        self.k3s_cfg = k3s_cfg if k3s_cfg is not None else K3sConfig()

    def _ensure_docker(self) -> None:
        try:
            client = docker.from_env()
        except docker.errors.DockerException as e:
            raise ProviderError(f"Failed to connect to Docker: {e}") from e
        try:
            client.ping()
        except docker.errors.DockerException as e:
            raise ProviderError(f"Docker daemon is not responding: {e}") from e
        finally:
            client.close()

    def start(self, ctx: RunContext, cluster_name: str) -> ClusterHandle:
        """Create a k3d cluster, replacing any stale cluster with the same name.

        Args:
            ctx: Run context for cancellation.
            cluster_name: Name of the k3d cluster.

        Returns:
            Handle for the running cluster.

        Raises:
            ProviderError: If Docker or the CLI tools are unavailable, or the
                cluster cannot be created after all attempts.
        """
        console.print(Panel.fit(f"Creating k3d cluster '{cluster_name}'", style="bold blue"))
        for cmd in ("k3d", "kubectl"):
            try:
                require_command(cmd)
            except RuntimeError as e:
                raise ProviderError(str(e)) from e
        self._ensure_docker()

        cfg = self.k3s_cfg

        @retry(
            stop=stop_after_attempt(cfg.max_retries),
            wait=wait_fixed(CLUSTER_CREATE_RETRY_WAIT_SECONDS),
            retry=retry_if_exception_type(CommandError),
            sleep=ctx.wait,
            reraise=True,
        )
        def _attempt() -> None:
            ctx.check()
            try:
                run_command(ctx, "k3d", ["cluster", "delete", cluster_name])
                console.print("[yellow]   Removed existing cluster[/yellow]")
            except CommandError as e:
                if e.exit_code != 1:
                    raise
                console.print("[yellow]   No existing cluster found[/yellow]")

            run_command(ctx, "k3d", [
                "cluster", "create", cluster_name,
                "--servers", str(cfg.servers),
                "--agents", str(cfg.agents),
                "--image", cfg.k3s_image,
                "--timeout", cfg.create_timeout,
                "--wait",
            ])

        _attempt()
        console.print(f"[green]\u2705 Cluster '{cluster_name}' is running[/green]")
        return ClusterHandle(name=cluster_name, kube_context=kube_context_name(cluster_name))

    def exec_command(
        self,
        ctx: RunContext,
        handle: ClusterHandle,
        command: str,
        timeout: float | None = DEFAULT_COMMAND_TIMEOUT_SECONDS,
    ) -> str:
        """Run ``kubectl <command>`` against the cluster and return stdout.

        Raises:
            CommandError: If kubectl exits non-zero or times out.
            RunCancelledError: If the context is cancelled mid-command.
        """
        args = ["--context", handle.kube_context, *shlex.split(command)]
        return run_command(ctx, "kubectl", args, timeout=timeout)

    def delete(self, cluster_name: str) -> None:
        """Delete a k3d cluster.

        Args:
            cluster_name: Name of the k3d cluster.
        """
        console.print(f"[yellow]\u2139\ufe0f  Deleting k3d cluster '{cluster_name}'...[/yellow]")
        try:
            run_command(background(), "k3d", ["cluster", "delete", cluster_name])
            console.print(f"[green]\u2705 Cluster '{cluster_name}' deleted[/green]")
        except CommandError as e:
            if e.exit_code != 1:
                raise
            console.print(f"[yellow]\u26a0\ufe0f  Cluster '{cluster_name}' not found or already deleted[/yellow]")
