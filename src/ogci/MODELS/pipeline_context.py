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
Models describing the state threaded through a single pipeline run.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict


class VersionTags(BaseModel):
    """
    The set of tags one build is published under.

    A release build carries ``[version, short_version, "latest"]``,
    anything else is published as ``["master"]``.
    """
    model_config = ConfigDict(frozen=True)

    version: Optional[str] = None
    short_version: Optional[str] = None
    tags: List[str] = ["master"]

    @property
    def is_release(self) -> bool:
        return self.version is not None

    @property
    def test_tag(self) -> str:
        """Tag of the image the smoke test runs against."""
        return "latest" if self.is_release else "master"


class PipelineContext(BaseModel):
    """
    Per-run state passed explicitly from step to step.

    ``container_id`` is set by the smoke session while its container is
    live and cleared again when the container is removed.
    """
    image: str
    tags: VersionTags
    container_id: Optional[str] = None
    src_dir: Optional[str] = None
    data_dir: Optional[str] = None

    def image_ref(self, tag: str) -> str:
        return f"{self.image}:{tag}"

    @property
    def test_image(self) -> str:
        return self.image_ref(self.tags.test_tag)
