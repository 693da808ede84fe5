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
Unit tests for the readiness state machine and poller.
"""
import sys

import pytest
from ogci.errors import PipelineError
from ogci.MANAGERS.readiness_poller import (
    PollResult,
    ReadinessPoller,
    ReadinessState,
    next_state,
    state_after_start,
)
from ogci.MODELS.smoke_settings import SmokeSettings
from ogci.RUNNERS.docker_cli import DockerCLI

UNREADY = ReadinessState.RUNNING_UNREADY


class TestTransitions:
    """Tests for the pure transition functions."""

    def test_start_with_handle(self):
        assert state_after_start("abc") is UNREADY

    @pytest.mark.parametrize("handle", [None, ""])
    def test_start_without_handle(self, handle):
        assert state_after_start(handle) is ReadinessState.FAILED

    def test_marker_makes_ready(self):
        assert next_state(UNREADY, 9, 90, PollResult(alive=True, marker_seen=True)) is ReadinessState.READY

    def test_still_waiting(self):
        assert next_state(UNREADY, 9, 90, PollResult(alive=True)) is UNREADY

    def test_dead_container_crashes_even_with_marker(self):
        state = next_state(UNREADY, 3, 90, PollResult(alive=False, marker_seen=True))
        assert state is ReadinessState.CRASHED

    def test_timeout(self):
        assert next_state(UNREADY, 90, 90) is ReadinessState.FAILED

    def test_timeout_wins_over_late_marker(self):
        state = next_state(UNREADY, 93, 90, PollResult(alive=True, marker_seen=True))
        assert state is ReadinessState.FAILED

    @pytest.mark.parametrize("state", [ReadinessState.READY, ReadinessState.FAILED, ReadinessState.CRASHED])
    def test_terminal_states_stay(self, state):
        assert state.is_terminal
        assert next_state(state, 0, 90, PollResult(alive=False)) is state

    def test_result_required_before_timeout(self):
        with pytest.raises(ValueError):
            next_state(UNREADY, 0, 90)


class TestReadinessPoller:
    """Tests for ReadinessPoller against the fake docker runner."""

    def _start(self, docker, fake_runner):
        fake_runner.started = True
        return fake_runner.container_id

    def test_ready_immediately(self, docker, fake_runner, settings, no_sleep):
        container_id = self._start(docker, fake_runner)
        state, waited = ReadinessPoller(docker, settings, sleep=no_sleep).wait(container_id)
        assert state is ReadinessState.READY
        assert waited == 0
        assert no_sleep.calls == []

    def test_ready_after_some_polls(self, docker, fake_runner, settings, no_sleep):
        fake_runner.ready_after = 3
        container_id = self._start(docker, fake_runner)
        state, waited = ReadinessPoller(docker, settings, sleep=no_sleep).wait(container_id)
        assert state is ReadinessState.READY
        assert waited == 6
        assert no_sleep.calls == [3, 3]

    def test_crash_dumps_logs(self, docker, fake_runner, settings, no_sleep, capsys):
        fake_runner.ready_after = None
        fake_runner.crash_after = 2
        container_id = self._start(docker, fake_runner)
        with pytest.raises(PipelineError, match="stopped unexpectedly"):
            ReadinessPoller(docker, settings, sleep=no_sleep).wait(container_id)
        assert sum(no_sleep.calls) < settings.max_wait
        assert "Container logs:" in capsys.readouterr().out

    def test_timeout(self, docker, fake_runner, settings, no_sleep):
        fake_runner.ready_after = None
        container_id = self._start(docker, fake_runner)
        with pytest.raises(PipelineError, match="did not start within 90s"):
            ReadinessPoller(docker, settings, sleep=no_sleep).wait(container_id)
        assert sum(no_sleep.calls) == 90
        # One poll per interval, none once the bound is reached
        assert fake_runner.polls == 30

    def test_no_container(self, docker, settings, no_sleep):
        with pytest.raises(PipelineError, match="Failed to start container"):
            ReadinessPoller(docker, settings, sleep=no_sleep).wait("")

    def test_custom_startup_marker(self, docker, fake_runner, no_sleep):
        fake_runner.base_logs = "OpenGrok indexer finished\n"
        fake_runner.ready_after = None
        container_id = self._start(docker, fake_runner)
        settings = SmokeSettings(startup_marker="indexer finished")
        state, waited = ReadinessPoller(docker, settings, sleep=no_sleep).wait(container_id)
        assert state is ReadinessState.READY
        assert waited == 0


LATIN1_DOCKER = """\
import sys
if sys.argv[1] == "ps":
    print("abc123")
elif sys.argv[1] == "logs":
    sys.stdout.buffer.write(b"Caf\\xe9 indexed\\nServer startup in 1234 ms\\n")
"""


@pytest.mark.skipif(sys.platform == "win32", reason="needs an executable script")
def test_ready_with_non_utf8_logs(tmp_path, settings, no_sleep):
    script = tmp_path / "docker"
    script.write_text(f"#!{sys.executable}\n{LATIN1_DOCKER}")
    script.chmod(0o755)
    poller = ReadinessPoller(DockerCLI(binary=str(script)), settings, sleep=no_sleep)
    assert poller.wait("abc123") == (ReadinessState.READY, 0)
