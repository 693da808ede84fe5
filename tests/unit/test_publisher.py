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
Unit tests for the registry publisher.
"""
import pytest
from ogci.errors import PipelineError
from ogci.MODELS.ci_settings import CISettings
from ogci.MODELS.pipeline_context import PipelineContext
from ogci.REGISTRY.publisher import PublishOutcome, Publisher
from ogci.UTILS.version_resolver import resolve_tags


def make_ci(**overrides):
    env = {
        "GITHUB_EVENT_NAME": "push",
        "OPENGROK_REPO_SLUG": "oracle/opengrok",
        "DOCKER_USERNAME": "opengrokbot",
        "DOCKER_PAT": "s3cret",
    }
    env.update(overrides)
    return CISettings.from_environment(env)


@pytest.fixture
def release_context():
    return PipelineContext(image="opengrok/docker", tags=resolve_tags(ref="refs/tags/1.13.7"))


class TestPublisher:
    """Tests for Publisher."""

    def test_pushes_each_tag_after_one_login(self, docker, fake_runner, settings, release_context):
        outcome = Publisher(docker, settings).publish(make_ci(), release_context)
        assert outcome is PublishOutcome.PUSHED
        assert len(fake_runner.commands("login")) == 1
        pushed = [call[2] for call in fake_runner.commands("push")]
        assert pushed == ["opengrok/docker:1.13.7", "opengrok/docker:1.13", "opengrok/docker:latest"]

    def test_token_is_piped_on_stdin(self, docker, fake_runner, settings, context):
        Publisher(docker, settings).publish(make_ci(), context)
        index = fake_runner.calls.index(fake_runner.commands("login")[0])
        assert fake_runner.inputs[index] == "s3cret"
        assert "s3cret" not in fake_runner.calls[index]

    def test_pull_request_skips_without_login(self, docker, fake_runner, settings, context):
        ci = make_ci(GITHUB_EVENT_NAME="pull_request")
        outcome = Publisher(docker, settings).publish(ci, context)
        assert outcome is PublishOutcome.SKIPPED_PULL_REQUEST
        assert fake_runner.calls == []

    def test_pull_request_skips_even_without_credentials(self, docker, fake_runner, settings, context):
        ci = make_ci(GITHUB_EVENT_NAME="pull_request", DOCKER_USERNAME="", DOCKER_PAT="")
        assert Publisher(docker, settings).publish(ci, context) is PublishOutcome.SKIPPED_PULL_REQUEST

    def test_fork_skips(self, docker, fake_runner, settings, context):
        ci = make_ci(OPENGROK_REPO_SLUG="someone/opengrok")
        assert Publisher(docker, settings).publish(ci, context) is PublishOutcome.SKIPPED_FORK
        assert fake_runner.calls == []

    @pytest.mark.parametrize("missing,message", [
        ("DOCKER_USERNAME", "DOCKER_USERNAME is empty"),
        ("DOCKER_PAT", "DOCKER_PAT is empty"),
    ])
    def test_missing_credential_fails(self, docker, fake_runner, settings, context, missing, message):
        ci = make_ci(**{missing: ""})
        with pytest.raises(PipelineError, match=message):
            Publisher(docker, settings).publish(ci, context)
        assert fake_runner.commands("login") == []

    def test_failed_login_is_fatal(self, docker, fake_runner, settings, context):
        fake_runner.login_exit = 1
        with pytest.raises(PipelineError, match="docker login failed"):
            Publisher(docker, settings).publish(make_ci(), context)
        assert fake_runner.commands("push") == []

    def test_failed_push_is_fatal(self, docker, fake_runner, settings, release_context):
        fake_runner.push_failures = {"opengrok/docker:1.13"}
        with pytest.raises(PipelineError, match="opengrok/docker:1.13"):
            Publisher(docker, settings).publish(make_ci(), release_context)
        assert len(fake_runner.commands("push")) == 2

    def test_master_build_pushes_master(self, docker, fake_runner, settings, context):
        Publisher(docker, settings).publish(make_ci(), context)
        assert [call[2] for call in fake_runner.commands("push")] == ["opengrok/docker:master"]
