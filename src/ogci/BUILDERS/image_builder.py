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
Builders that lint the Dockerfile and produce the tagged image.
"""
import os
from typing import List

from ..errors import PipelineError
from ..MODELS.pipeline_context import VersionTags
from ..MODELS.smoke_settings import SmokeSettings
from ..REGISTRY.image_reference import ImageReference
from ..RUNNERS.docker_cli import DockerCLI


class ImageBuilder:
    """
    Lints the build descriptor and builds the image under every tag of a run.
    """
    def __init__(self, docker: DockerCLI, settings: SmokeSettings, base_dir: str = "."):
        """
        Initializes the ImageBuilder.

        :param docker: Docker command wrapper.
        :param settings: Image name, Dockerfile and linter settings.
        :param base_dir: The base directory for resolving relative paths.
        """
        self.docker = docker
        self.settings = settings
        self.base_dir = base_dir
        self.image = ImageReference.parse(settings.image)

    @property
    def dockerfile_path(self) -> str:
        return os.path.join(self.base_dir, self.settings.dockerfile)

    def refs(self, tags: VersionTags) -> List[str]:
        """Full image references for each tag."""
        return [str(self.image.with_tag(tag)) for tag in tags.tags]

    def lint(self) -> None:
        """
        Runs the Dockerfile linter.

        :raises PipelineError: If the Dockerfile is missing or has findings.
        """
        print("Running linter")
        if not os.path.exists(self.dockerfile_path):
            raise PipelineError(f"Dockerfile not found: {self.dockerfile_path}")
        with open(self.dockerfile_path, 'r') as f:
            content = f.read()

        result = self.docker.lint(content, self.settings.linter_image)
        if result.output:
            print(result.output)
        if not result.ok:
            raise PipelineError(f"Dockerfile lint failed (exit {result.exit_code})")

    def build(self, tags: VersionTags) -> List[str]:
        """
        Builds the image once with a ``-t`` per tag.

        :param tags: The resolved tag set.
        :return: The image references produced.
        :raises PipelineError: If the build fails.
        """
        refs = self.refs(tags)
        if tags.is_release:
            print(f"Building docker image for release ({' '.join(tags.tags)})")
        else:
            print("Building docker image for master")

        context = os.path.join(self.base_dir, self.settings.build_context)
        result = self.docker.build(refs, context=context, dockerfile=self.dockerfile_path)
        if not result.ok:
            raise PipelineError(f"Image build failed (exit {result.exit_code})")
        return refs
