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
Readiness polling for a freshly started container.

The container is considered ready once its log output contains the startup
marker. Liveness is checked before readiness on every poll so a container
that died is reported at once instead of waiting out the timeout.
"""
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from ..errors import PipelineError
from ..MODELS.smoke_settings import SmokeSettings
from ..RUNNERS.docker_cli import DockerCLI
from .log_inspector import LogInspector


class ReadinessState(str, Enum):
    """Readiness of the container under test."""

    STARTING = "starting"
    RUNNING_UNREADY = "running"
    READY = "ready"
    FAILED = "failed"  # Timed out
    CRASHED = "crashed"  # Exited before becoming ready

    @property
    def is_terminal(self) -> bool:
        return self in (ReadinessState.READY, ReadinessState.FAILED, ReadinessState.CRASHED)


@dataclass(frozen=True)
class PollResult:
    """What one poll observed."""

    alive: bool
    marker_seen: bool = False


def state_after_start(container_id: Optional[str]) -> ReadinessState:
    """STARTING moves on only if the runtime handed back a container id."""
    return ReadinessState.RUNNING_UNREADY if container_id else ReadinessState.FAILED


def next_state(
    state: ReadinessState,
    elapsed: float,
    max_wait: float,
    result: Optional[PollResult] = None,
) -> ReadinessState:
    """
    Pure transition function of the readiness state machine.

    Args:
        state: Current state.
        elapsed: Seconds waited so far.
        max_wait: Upper bound on the total wait.
        result: Observation for this poll. Not needed once the bound is hit.

    Returns:
        The following state.
    """
    if state is not ReadinessState.RUNNING_UNREADY:
        return state
    if elapsed >= max_wait:
        return ReadinessState.FAILED
    if result is None:
        raise ValueError("A poll result is required before the timeout")
    if not result.alive:
        return ReadinessState.CRASHED
    if result.marker_seen:
        return ReadinessState.READY
    return ReadinessState.RUNNING_UNREADY


class ReadinessPoller:
    """
    Polls a container until it is ready, crashed, or out of time.
    """

    def __init__(
        self,
        docker: DockerCLI,
        settings: SmokeSettings,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initializes the poller.

        :param docker: Docker command wrapper.
        :param settings: Poll interval, bound and startup marker.
        :param sleep: Sleep function, replaceable in tests.
        """
        self.docker = docker
        self.settings = settings
        self.sleep = sleep
        self.inspector = LogInspector(settings)

    def poll(self, container_id: str) -> PollResult:
        if not self.docker.is_running(container_id):
            return PollResult(alive=False)
        logs = self.docker.logs(container_id)
        return PollResult(alive=True, marker_seen=self.inspector.has_startup_marker(logs))

    def wait(self, container_id: Optional[str]) -> Tuple[ReadinessState, float]:
        """
        Waits for the container to become ready.

        Args:
            container_id: Handle returned by the start call.

        Returns:
            Final state (always READY) and the seconds waited.

        Raises:
            PipelineError: If the container crashed, never started, or the
                wait bound elapsed. Logs are dumped first.
        """
        print("Waiting for container to be ready...")
        state = state_after_start(container_id)
        waited: float = 0

        while not state.is_terminal:
            result = None
            if waited < self.settings.max_wait:
                result = self.poll(container_id)
            state = next_state(state, waited, self.settings.max_wait, result)
            if state.is_terminal:
                break
            self.sleep(self.settings.poll_interval)
            waited += self.settings.poll_interval
            print(f"  Waited {waited:g}s...")

        if state is ReadinessState.READY:
            print(f"✓ Container is ready! (took {waited:g}s)")
            return state, waited

        if state is ReadinessState.CRASHED:
            message = "Container stopped unexpectedly"
        elif container_id:
            message = f"Container did not start within {self.settings.max_wait:g}s"
        else:
            message = "Failed to start container"

        if container_id:
            self.dump_logs(container_id)
        raise PipelineError(message)

    def dump_logs(self, container_id: str) -> None:
        print("Container logs:")
        print(self.docker.logs(container_id))
