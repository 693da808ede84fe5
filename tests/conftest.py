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
Shared fixtures: a scripted stand-in for the docker command line.
"""
from typing import Dict, List, Optional, Sequence

import pytest

from ogci.MODELS.pipeline_context import PipelineContext, VersionTags
from ogci.MODELS.smoke_settings import SmokeSettings
from ogci.RUNNERS.docker_cli import DockerCLI
from ogci.RUNNERS.process_runner import CommandResult

CONTAINER_ID = "4f2c9e1b7a6d"
STARTUP_LINE = "19-Oct-2026 10:00:00.000 INFO [main] org.apache.catalina.startup.Catalina.start Server startup in 1234 ms"


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: needs a Docker daemon and the built image")


class FakeDockerRunner:
    """
    Answers ``docker`` invocations from a scripted container.

    The container becomes ready once ``ready_after`` liveness polls have been
    made and dies once ``crash_after`` polls have been made. Either may be
    None to never happen.
    """

    def __init__(
        self,
        container_id: str = CONTAINER_ID,
        ready_after: Optional[int] = 0,
        crash_after: Optional[int] = None,
        base_logs: str = "Starting OpenGrok\n",
        owners: Optional[Dict[str, str]] = None,
        unwritable: Sequence[str] = (),
        ip: str = "172.17.0.2",
        lint_exit: int = 0,
        build_exit: int = 0,
        login_exit: int = 0,
        push_failures: Sequence[str] = (),
    ):
        self.container_id = container_id
        self.ready_after = ready_after
        self.crash_after = crash_after
        self.base_logs = base_logs
        self.owners = owners or {}
        self.unwritable = set(unwritable)
        self.ip = ip
        self.lint_exit = lint_exit
        self.build_exit = build_exit
        self.login_exit = login_exit
        self.push_failures = set(push_failures)

        self.calls: List[List[str]] = []
        self.inputs: List[Optional[str]] = []
        self.polls = 0
        self.started = False
        self.stopped = False
        self.removed = False
        self.mounts: Dict[str, str] = {}

    def commands(self, verb: str) -> List[List[str]]:
        return [call for call in self.calls if call[1] == verb]

    @property
    def alive(self) -> bool:
        if not self.started or self.stopped:
            return False
        return self.crash_after is None or self.polls < self.crash_after

    @property
    def ready(self) -> bool:
        return self.ready_after is not None and self.polls >= self.ready_after

    def run(self, args, input_text=None, merge_stderr=False, capture_output=True, timeout=None):
        args = list(args)
        self.calls.append(args)
        self.inputs.append(input_text)
        verb = args[1]
        handler = getattr(self, f"_{verb}", None)
        if handler is None:
            return CommandResult(args=args)
        exit_code, stdout = handler(args[2:])
        return CommandResult(args=args, stdout=stdout, exit_code=exit_code)

    def _run(self, rest):
        if rest[:2] == ["--rm", "-i"]:
            return self.lint_exit, "" if self.lint_exit == 0 else "DL3008 warning: Pin versions"
        for index, value in enumerate(rest):
            if value == "-v":
                host, container = rest[index + 1].split(":")
                self.mounts[host] = container
        if not self.container_id:
            return 125, ""
        self.started = True
        return 0, self.container_id + "\n"

    def _buildx(self, rest):
        return self.build_exit, ""

    def _ps(self, rest):
        if rest == ["-a"]:
            return 0, "CONTAINER ID   IMAGE   STATUS\n"
        alive = self.alive
        self.polls += 1
        return 0, (self.container_id + "\n") if alive else ""

    def _logs(self, rest):
        logs = self.base_logs
        if self.ready and self.started:
            logs += STARTUP_LINE + "\n"
        return 0, logs

    def _inspect(self, rest):
        return 0, self.ip + "\n"

    def _port(self, rest):
        port = rest[1].split("/")[0]
        return 0, f"0.0.0.0:4{port}\n"

    def _exec(self, rest):
        command = rest[1:]
        if command[:2] == ["test", "-w"]:
            return (1 if command[2] in self.unwritable else 0), ""
        if command[:2] == ["test", "-e"]:
            return 0, ""
        if command[0] == "stat":
            return 0, self.owners.get(command[-1], "appuser:appgroup") + "\n"
        if command[0] == "ps":
            return 0, "appuser  1  java org.apache.catalina.startup.Bootstrap start\n"
        return 127, ""

    def _stop(self, rest):
        if self.stopped:
            return 1, ""
        self.stopped = True
        return 0, ""

    def _rm(self, rest):
        if self.removed:
            return 1, ""
        self.removed = True
        return 0, ""

    def _login(self, rest):
        return self.login_exit, "Login Succeeded\n" if self.login_exit == 0 else ""

    def _push(self, rest):
        return (1 if rest[0] in self.push_failures else 0), ""


@pytest.fixture
def fake_runner():
    return FakeDockerRunner()


@pytest.fixture
def docker(fake_runner):
    return DockerCLI(runner=fake_runner)


@pytest.fixture
def settings():
    return SmokeSettings(web_retry_delay=0, poll_interval=3, max_wait=90)


@pytest.fixture
def context():
    return PipelineContext(image="opengrok/docker", tags=VersionTags())


class RecordingSleep:
    """Sleep replacement that only remembers how long it was asked to wait."""

    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def no_sleep():
    return RecordingSleep()
