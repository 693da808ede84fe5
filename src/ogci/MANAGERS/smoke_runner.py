# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
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


"""
Smoke test of a built image: start, wait for readiness, verify, clean up.
"""
import time
from typing import Callable, Optional

from ..MODELS.pipeline_context import PipelineContext
from ..MODELS.smoke_report import CheckResult, SmokeReport
from ..MODELS.smoke_settings import SmokeSettings
from ..RUNNERS.docker_cli import DockerCLI
from .container_probe import ContainerProbe
from .endpoint_verifier import (
    EndpointVerifier,
    HttpGet,
    check_mounts_writable,
    check_ownership,
    http_get,
)
from .log_inspector import LogInspector
from .readiness_poller import ReadinessPoller
from .smoke_session import SmokeSession

BANNER = "=" * 38


class SmokeRunner:
    """
    Runs the advisory smoke test against the image of a pipeline run.

    Fatal problems (no container, crash, timeout, unwritable mounts) raise
    ``PipelineError``; everything else ends up as a warning on the report.
    The container and directories are removed before ``run`` returns or
    raises.
    """

    def __init__(
        self,
        docker: DockerCLI,
        settings: SmokeSettings,
        sleep: Callable[[float], None] = time.sleep,
        http_get: HttpGet = http_get,
    ):
        self.docker = docker
        self.settings = settings
        self.poller = ReadinessPoller(docker, settings, sleep=sleep)
        self.verifier = EndpointVerifier(settings, http_get=http_get, sleep=sleep)
        self.inspector = LogInspector(settings)

    def run(self, context: PipelineContext) -> SmokeReport:
        print(BANNER)
        print("Running Docker image smoke tests")
        print(BANNER)

        report = SmokeReport()
        with SmokeSession(self.docker, self.settings, context) as session:
            container_id = session.container_id
            report.container_id = container_id

            state, report.waited = self.poller.wait(container_id)
            report.record(CheckResult(name="ready", ok=True, detail=f"{state.value} after {report.waited:g}s"))

            self.scan_logs(container_id, report)
            self.check_endpoints(container_id, report)

            probe = ContainerProbe(lambda command: self.docker.exec(container_id, *command))
            check_mounts_writable(probe, self.settings.mounts, report)
            check_ownership(probe, self.settings.mounts, self.settings.expected_owner, report)

        print(BANNER)
        if report.passed:
            print("✓ All smoke tests passed!")
        else:
            print(f"Smoke tests passed with {len(report.warnings)} warning(s)")
        print(BANNER)
        return report

    def scan_logs(self, container_id: str, report: SmokeReport) -> None:
        print("Checking for errors in container logs...")
        errors = self.inspector.error_lines(self.docker.logs(container_id))
        if errors:
            report.add_warning(f"Found {len(errors)} error/fatal messages in logs")
            for line in errors:
                print(line)
        else:
            print("✓ No errors found in logs")
        report.record(CheckResult(name="logs", ok=not errors, detail=f"{len(errors)} error line(s)"))

    def endpoint_url(self, container_id: str, port: int) -> Optional[str]:
        """
        Base URL a container port is reachable on from this host.

        Published ports are used when enabled, the container IP otherwise.
        """
        if self.settings.publish_ports:
            address = self.docker.mapped_port(container_id, port)
            return f"http://{address}/" if address else None
        ip = self.docker.container_ip(container_id)
        return f"http://{ip}:{port}/" if ip else None

    def check_endpoints(self, container_id: str, report: SmokeReport) -> None:
        web_url = self.endpoint_url(container_id, self.settings.web_port)
        if web_url:
            self.verifier.check_web(web_url, report)
        else:
            report.add_warning(f"Could not determine address of port {self.settings.web_port}")

        api_url = self.endpoint_url(container_id, self.settings.api_port)
        if api_url:
            self.verifier.check_api(api_url, report)
        else:
            print("SKIPPED: no address for the REST API")
