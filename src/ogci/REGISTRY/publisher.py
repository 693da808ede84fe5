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
Publishing of built images to the registry.
"""
from enum import Enum
from typing import Optional

from ..errors import PipelineError
from ..MODELS.ci_settings import CISettings
from ..MODELS.pipeline_context import PipelineContext
from ..MODELS.smoke_settings import SmokeSettings
from ..RUNNERS.docker_cli import DockerCLI
from .image_reference import ImageReference


class PublishOutcome(str, Enum):
    """How a publish request ended."""

    SKIPPED_PULL_REQUEST = "skipped-pull-request"
    SKIPPED_FORK = "skipped-fork"
    PUSHED = "pushed"


class Publisher:
    """
    Pushes every tag of a run, if the run is allowed to publish.

    Pull request builds and forks are skipped: they carry no registry
    credentials. Missing credentials on the canonical repository are fatal.
    """
    def __init__(self, docker: DockerCLI, settings: SmokeSettings):
        self.docker = docker
        self.settings = settings

    def skip_reason(self, ci: CISettings) -> Optional[PublishOutcome]:
        """Returns the skip outcome for this run, or None if it may publish."""
        if ci.event_name in self.settings.pull_request_events:
            print("Not pushing Docker image for pull requests")
            return PublishOutcome.SKIPPED_PULL_REQUEST
        if ci.repo_slug != self.settings.canonical_repo:
            print("Not pushing Docker image for non main repository")
            return PublishOutcome.SKIPPED_FORK
        return None

    def publish(self, ci: CISettings, context: PipelineContext) -> PublishOutcome:
        """
        Logs in once and pushes each tag.

        :param ci: Event type, repository and credentials.
        :param context: Image name and tag set of the run.
        :raises PipelineError: On missing credentials or a failed push.
        """
        skipped = self.skip_reason(ci)
        if skipped is not None:
            return skipped

        if not ci.docker_username:
            raise PipelineError("DOCKER_USERNAME is empty, exiting")
        token = ci.docker_pat.get_secret_value()
        if not token:
            raise PipelineError("DOCKER_PAT is empty, exiting")

        print("Logging into Docker Hub")
        self.docker.login(ci.docker_username, token)

        image = ImageReference.parse(context.image)
        for tag in context.tags.tags:
            print(f"Pushing Docker image for tag {tag}")
            self.docker.push(str(image.with_tag(tag)))
        return PublishOutcome.PUSHED
