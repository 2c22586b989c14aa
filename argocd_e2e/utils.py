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

"""Utility functions for command checks and subprocess execution."""

from __future__ import annotations

import contextlib
import threading

import sh

from argocd_e2e import logger
from argocd_e2e.constants import CANCEL_POLL_INTERVAL_SECONDS, K3D_CONTEXT_PREFIX
from argocd_e2e.context import RunContext
from argocd_e2e.errors import CommandError, RunCancelledError


def kube_context_name(cluster_name: str) -> str:
    """Return the kubeconfig context k3d registers for a cluster.

    Args:
        cluster_name: k3d cluster name.

    Returns:
        Context name (e.g. ``k3d-argocd-test``).
    """
    return f"{K3D_CONTEXT_PREFIX}{cluster_name}"


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        RuntimeError: If the command is not found.
    """
    try:
        sh.which(cmd)
    except sh.ErrorReturnCode as err:
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.") from err


def run_command(
    ctx: RunContext,
    binary: str,
    args: list[str],
    timeout: float | None = None,
) -> str:
    """Run a command in the background and return its stdout.

    A watcher thread kills the child as soon as the context is cancelled
    or its deadline passes.

    Args:
        ctx: Run context checked before and during execution.
        binary: Executable name (e.g. ``kubectl``).
        args: Arguments passed to the executable.
        timeout: Per-call limit in seconds, further bounded by the context deadline.

    Returns:
        Decoded stdout of the command.

    Raises:
        RunCancelledError: If the context is cancelled or expires.
        CommandError: If the command is missing, exits non-zero, or exceeds *timeout*.
    """
    ctx.check()
    command_str = " ".join([binary, *args])
    logger.info("Running: %s", command_str)

    bounded = ctx.bound(timeout)
    try:
        cmd = sh.Command(binary)
    except sh.CommandNotFound as err:
        raise CommandError(command_str, None, f"command not found: {binary}") from err
    proc = cmd(*args, _bg=True, _bg_exc=False, _timeout=bounded)
    finished = threading.Event()

    def _watch() -> None:
        while not finished.wait(CANCEL_POLL_INTERVAL_SECONDS):
            if ctx.cancelled or ctx.expired:
                with contextlib.suppress(OSError):
                    proc.kill()
                return

    watcher = threading.Thread(target=_watch, name=f"watch-{binary}", daemon=True)
    watcher.start()
    try:
        proc.wait()
    except sh.TimeoutException as err:
        if ctx.expired:
            raise RunCancelledError("run deadline exceeded") from err
        raise CommandError(command_str, None, f"timed out after {bounded:g}s") from err
    except sh.ErrorReturnCode as err:
        ctx.check()
        stderr = err.stderr.decode(errors="replace") if err.stderr else ""
        raise CommandError(command_str, err.exit_code, stderr) from err
    finally:
        finished.set()
    return str(proc)
