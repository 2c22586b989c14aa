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

"""Integration test report."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from argocd_e2e.constants import REPORT_BANNER, SECTION_DEPLOYMENT, SECTION_PODS, SECTION_WAIT


def rfc3339_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass(frozen=True)
class TestReport:
    """Aggregated output of a successful run.

    Attributes:
        cluster_name: Effective cluster name used for the run.
        deploy_output: stdout of the manifest apply.
        wait_output: stdout of the readiness wait.
        pod_status: stdout of the pod listing.
        timestamp: RFC3339 completion time.
    """

    __test__ = False

    cluster_name: str
    deploy_output: str
    wait_output: str
    pod_status: str
    timestamp: str = field(default_factory=rfc3339_now)

    def render(self) -> str:
        """Format the report as one multi-section text block."""
        sections = [
            (SECTION_DEPLOYMENT, self.deploy_output),
            (SECTION_WAIT, self.wait_output),
            (SECTION_PODS, self.pod_status),
        ]
        lines = [
            REPORT_BANNER,
            "",
            f"Cluster: {self.cluster_name}",
            f"Timestamp: {self.timestamp}",
        ]
        for title, body in sections:
            lines += ["", f"=== {title} ===", body]
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()
