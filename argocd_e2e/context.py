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

"""Cancellation and deadline context shared by every pipeline step."""

from __future__ import annotations

import threading
import time

from argocd_e2e.errors import RunCancelledError


class RunContext:
    """Cancellation flag plus an optional monotonic deadline.

    Safe to cancel from another thread (e.g. a signal handler) while the
    pipeline is blocked inside a step.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._cancelled = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        """Raise RunCancelledError if the run should stop.

        Raises:
            RunCancelledError: If cancelled or past the deadline.
        """
        if self.cancelled:
            raise RunCancelledError("run cancelled")
        if self.expired:
            raise RunCancelledError("run deadline exceeded")

    def wait(self, seconds: float) -> None:
        """Sleep up to *seconds*, returning early on cancel or at the deadline."""
        self._cancelled.wait(self.bound(seconds))

    def bound(self, timeout: float | None) -> float | None:
        """Clamp a per-call timeout to the time left before the deadline."""
        remaining = self.remaining()
        if remaining is None:
            return timeout
        if timeout is None:
            return remaining
        return min(timeout, remaining)


def background() -> RunContext:
    """Return a context that is never cancelled and has no deadline."""
    return RunContext()
