"""Tests for K3dClusterProvider with k3d/kubectl invocations recorded."""

import inspect
import time
from unittest.mock import MagicMock

import docker
import pytest

from argocd_e2e import provider as provider_mod
from argocd_e2e.config import K3sConfig
from argocd_e2e.constants import DEFAULT_COMMAND_TIMEOUT_SECONDS
from argocd_e2e.context import RunContext
from argocd_e2e.errors import CommandError, ProviderError, RunCancelledError
from argocd_e2e.provider import ClusterHandle, ClusterProvider, K3dClusterProvider


class CommandRecorder:
    """Stand-in for run_command that records calls and replays results."""

    def __init__(self):
        self.calls = []
        self.results = []

    def __call__(self, ctx, binary, args, timeout=None):
        self.calls.append((binary, list(args), timeout))
        if self.results:
            result = self.results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result
        return ""


@pytest.fixture
def recorder(monkeypatch):
    rec = CommandRecorder()
    monkeypatch.setattr(provider_mod, "run_command", rec)
    monkeypatch.setattr(provider_mod, "require_command", lambda cmd: None)
    monkeypatch.setattr(provider_mod, "CLUSTER_CREATE_RETRY_WAIT_SECONDS", 0)
    return rec


@pytest.fixture
def docker_client(monkeypatch):
    client = MagicMock()
    monkeypatch.setattr(provider_mod.docker, "from_env", lambda: client)
    return client


def test_start_creates_cluster(recorder, docker_client):
    p = K3dClusterProvider(K3sConfig(agents=1, k3s_image="rancher/k3s:test"))
    handle = p.start(MagicMock(), "argocd-test")

    assert handle == ClusterHandle(name="argocd-test", kube_context="k3d-argocd-test")
    docker_client.ping.assert_called_once()
    docker_client.close.assert_called_once()

    (_, delete_args, _), (binary, create_args, _) = recorder.calls
    assert delete_args == ["cluster", "delete", "argocd-test"]
    assert binary == "k3d"
    assert create_args[:3] == ["cluster", "create", "argocd-test"]
    assert create_args[create_args.index("--agents") + 1] == "1"
    assert create_args[create_args.index("--image") + 1] == "rancher/k3s:test"
    assert "--wait" in create_args


def test_start_retries_failed_create(recorder, docker_client):
    recorder.results = [
        "", CommandError("k3d cluster create", 1, "port in use"),
        "", "created",
    ]
    p = K3dClusterProvider(K3sConfig(max_retries=2))
    p.start(MagicMock(), "argocd-test")

    creates = [args for _, args, _ in recorder.calls if args[:2] == ["cluster", "create"]]
    assert len(creates) == 2


def test_start_gives_up_after_max_retries(recorder, docker_client):
    failure = CommandError("k3d cluster create", 1, "port in use")
    recorder.results = ["", failure, "", failure]
    p = K3dClusterProvider(K3sConfig(max_retries=2))

    with pytest.raises(CommandError, match="port in use"):
        p.start(MagicMock(), "argocd-test")


def test_start_missing_stale_cluster_is_fine(recorder, docker_client):
    recorder.results = [CommandError("k3d cluster delete", 1, "no such cluster"), "created"]
    p = K3dClusterProvider(K3sConfig(max_retries=1))
    handle = p.start(MagicMock(), "ci")
    assert handle.kube_context == "k3d-ci"


def test_start_without_docker(recorder, monkeypatch):
    def _boom():
        raise docker.errors.DockerException("socket not found")

    monkeypatch.setattr(provider_mod.docker, "from_env", _boom)
    with pytest.raises(ProviderError, match="Failed to connect to Docker"):
        K3dClusterProvider().start(MagicMock(), "argocd-test")
    assert recorder.calls == []


def test_start_docker_not_responding(recorder, docker_client):
    docker_client.ping.side_effect = docker.errors.APIError("daemon down")
    with pytest.raises(ProviderError, match="not responding"):
        K3dClusterProvider().start(MagicMock(), "argocd-test")
    docker_client.close.assert_called_once()


def test_exec_command_targets_cluster_context(recorder):
    recorder.results = ["argocd-server-xyz   1/1   Running"]
    handle = ClusterHandle(name="argocd-test", kube_context="k3d-argocd-test")

    out = K3dClusterProvider().exec_command(MagicMock(), handle, "get pods -n argocd", timeout=42)

    assert out == "argocd-server-xyz   1/1   Running"
    assert recorder.calls == [
        ("kubectl", ["--context", "k3d-argocd-test", "get", "pods", "-n", "argocd"], 42),
    ]


def test_exec_command_propagates_errors(recorder):
    recorder.results = [CommandError("kubectl create namespace argocd", 1, "already exists")]
    handle = ClusterHandle(name="a", kube_context="k3d-a")
    with pytest.raises(CommandError, match="already exists"):
        K3dClusterProvider().exec_command(MagicMock(), handle, "create namespace argocd")


def test_delete_cluster(recorder):
    K3dClusterProvider().delete("argocd-test")
    assert recorder.calls[0][1] == ["cluster", "delete", "argocd-test"]


def test_delete_missing_cluster_is_not_an_error(recorder):
    recorder.results = [CommandError("k3d cluster delete", 1, "not found")]
    K3dClusterProvider().delete("argocd-test")


def test_delete_other_failures_raise(recorder):
    recorder.results = [CommandError("k3d cluster delete", 2, "docker error")]
    with pytest.raises(CommandError):
        K3dClusterProvider().delete("argocd-test")


def test_cancel_during_failed_create_skips_backoff(monkeypatch, docker_client):
    ctx = RunContext()
    creates = []

    def _run(run_ctx, binary, args, timeout=None):
        if args[:2] == ["cluster", "create"]:
            creates.append(args)
            ctx.cancel()
            raise CommandError("k3d cluster create", 1, "port in use")
        return ""

    monkeypatch.setattr(provider_mod, "run_command", _run)
    monkeypatch.setattr(provider_mod, "require_command", lambda cmd: None)

    started = time.monotonic()
    with pytest.raises(RunCancelledError):
        K3dClusterProvider(K3sConfig(max_retries=3)).start(ctx, "argocd-test")

    assert time.monotonic() - started < 2
    assert len(creates) == 1


def test_start_stale_delete_docker_error_raises(recorder, docker_client):
    recorder.results = [CommandError("k3d cluster delete", 2, "docker error")]

    with pytest.raises(CommandError, match="docker error"):
        K3dClusterProvider(K3sConfig(max_retries=1)).start(MagicMock(), "argocd-test")

    assert not any(args[:2] == ["cluster", "create"] for _, args, _ in recorder.calls)


def test_protocol_and_k3d_share_exec_timeout_default():
    protocol_default = inspect.signature(ClusterProvider.exec_command).parameters["timeout"].default
    k3d_default = inspect.signature(K3dClusterProvider.exec_command).parameters["timeout"].default
    assert protocol_default == k3d_default == DEFAULT_COMMAND_TIMEOUT_SECONDS
