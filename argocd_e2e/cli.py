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

"""
cli.py - ArgoCD on k3s integration test.

Subcommands:
    run      Create a k3d cluster, install ArgoCD, and print the test report
    delete   Delete the k3d cluster

Examples:
    # Run against the default cluster name (argocd-test)
    argocd-e2e run

    # Pin a different ArgoCD release
    argocd-e2e run --cluster-name ci-1234 --argocd-version v2.12.6

    # Clean up afterwards
    argocd-e2e delete --cluster-name ci-1234

Environment Variables:
    ARGOCD_E2E_ARGOCD_VERSION, ARGOCD_E2E_NAMESPACE, ARGOCD_E2E_WAIT_TIMEOUT_SECONDS,
    ARGOCD_E2E_K3S_IMAGE, ARGOCD_E2E_AGENTS, ARGOCD_E2E_MAX_RETRIES
"""

from __future__ import annotations

import logging
import signal

import typer
from pydantic import ValidationError

from argocd_e2e import console
from argocd_e2e.config import ArgoCDConfig, K3sConfig, TestRunConfig
from argocd_e2e.constants import DEFAULT_CLUSTER_NAME
from argocd_e2e.context import RunContext
from argocd_e2e.errors import PipelineError
from argocd_e2e.pipeline import run_integration_test
from argocd_e2e.provider import K3dClusterProvider

app = typer.Typer(
    help="ArgoCD on k3s integration test.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


@app.command()
def run(
    cluster_name: str = typer.Option("", "--cluster-name", help=f"k3d cluster name (default: {DEFAULT_CLUSTER_NAME})"),
    argocd_version: str | None = typer.Option(None, "--argocd-version", help="ArgoCD release tag"),
    namespace: str | None = typer.Option(None, "--namespace", help="ArgoCD namespace"),
    wait_timeout: int | None = typer.Option(None, "--wait-timeout", min=1, help="Readiness wait timeout in seconds"),
    agents: int | None = typer.Option(None, "--agents", min=0, help="Number of k3s agent nodes"),
    timeout: float | None = typer.Option(None, "--timeout", help="Overall deadline for the run in seconds"),
) -> None:
    """Create a cluster, install ArgoCD, wait for it, and print the report."""
    overrides: dict = {}
    if argocd_version is not None:
        overrides["argocd_version"] = argocd_version
    if namespace is not None:
        overrides["namespace"] = namespace
    if wait_timeout is not None:
        overrides["wait_timeout_seconds"] = wait_timeout
    k3s_overrides: dict = {}
    if agents is not None:
        k3s_overrides["agents"] = agents

    # Init kwargs take precedence over ARGOCD_E2E_* env vars and are validated.
    try:
        settings = ArgoCDConfig(**overrides)
        k3s_cfg = K3sConfig(**k3s_overrides)
    except ValidationError as e:
        console.print(f"[red]\u274c Invalid option: {e}[/red]")
        raise typer.Exit(code=2)

    ctx = RunContext(timeout=timeout)
    previous = signal.signal(signal.SIGINT, lambda *_: ctx.cancel())
    try:
        report = run_integration_test(
            TestRunConfig(cluster_name=cluster_name),
            K3dClusterProvider(k3s_cfg),
            settings=settings,
            ctx=ctx,
        )
    except PipelineError as e:
        console.print(f"[red]\u274c {e}[/red]")
        raise typer.Exit(code=1)
    finally:
        signal.signal(signal.SIGINT, previous)

    typer.echo(report.render())


@app.command()
def delete(
    cluster_name: str = typer.Option(DEFAULT_CLUSTER_NAME, "--cluster-name", help="k3d cluster name"),
) -> None:
    """Delete the k3d cluster."""
    K3dClusterProvider().delete(cluster_name or DEFAULT_CLUSTER_NAME)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
