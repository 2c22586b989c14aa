"""
Shared pytest fixtures for argocd_e2e tests.

FakeClusterProvider records every call and replays canned kubectl output, so
the pipeline can be exercised without Docker or a real cluster.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field

import pytest

from argocd_e2e.constants import DEFAULT_COMMAND_TIMEOUT_SECONDS
from argocd_e2e.context import RunContext
from argocd_e2e.errors import CommandError
from argocd_e2e.provider import ClusterHandle


@dataclass
class ProviderCall:
    """Record of one provider call."""
    operation: str
    argument: str
    timeout: float | None = None


@dataclass
class FakeClusterProvider:
    """
    Cluster provider test double.

    ``outputs`` maps a command prefix to its stdout; ``failures`` maps a
    command prefix (or ``"start"``) to the exception to raise.
    """
    outputs: dict[str, str] = field(default_factory=dict)
    failures: dict[str, Exception] = field(default_factory=dict)
    calls: list[ProviderCall] = field(default_factory=list)
    on_exec: Callable[[str], None] | None = None

    def start(self, ctx: RunContext, cluster_name: str) -> ClusterHandle:
        self.calls.append(ProviderCall("start", cluster_name))
        if "start" in self.failures:
            raise self.failures["start"]
        return ClusterHandle(name=cluster_name, kube_context=f"k3d-{cluster_name}")

    def exec_command(self, ctx, handle, command, timeout=DEFAULT_COMMAND_TIMEOUT_SECONDS):
        self.calls.append(ProviderCall("exec", command, timeout))
        if self.on_exec is not None:
            self.on_exec(command)
        for prefix, exc in self.failures.items():
            if command.startswith(prefix):
                raise exc
        for prefix, out in self.outputs.items():
            if command.startswith(prefix):
                return out
        return ""

    @property
    def commands(self) -> list[str]:
        return [c.argument for c in self.calls if c.operation == "exec"]

    @property
    def operations(self) -> list[str]:
        return [c.operation for c in self.calls]


SCENARIO_A_OUTPUTS = {
    "create namespace": "ns/argocd created",
    "apply": "customresourcedefinition.apiextensions.k8s.io/applications.argoproj.io created",
    "wait": "deployment.apps/argocd-server condition met",
    "get pods": "argocd-server-xyz   1/1   Running",
}


@pytest.fixture
def provider():
    """Provider whose commands all succeed with realistic output."""
    return FakeClusterProvider(outputs=dict(SCENARIO_A_OUTPUTS))


@pytest.fixture
def command_error():
    """Factory for CommandError instances."""
    def _make(command: str, stderr: str, exit_code: int = 1) -> CommandError:
        return CommandError(command, exit_code, stderr)
    return _make


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep ARGOCD_E2E_* variables from the host out of config defaults."""
    for key in list(os.environ):
        if key.startswith("ARGOCD_E2E_"):
            monkeypatch.delenv(key)
