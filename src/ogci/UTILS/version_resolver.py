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
Derives image tags from the git ref or tag a build was triggered for.
"""
from typing import Optional

from ..errors import PipelineError
from ..MODELS.pipeline_context import VersionTags

TAG_REF_PREFIX = "refs/tags/"


def short_version(version: str) -> str:
    """
    Truncates a version to its first two dot-separated components.

    ``1.13.7`` becomes ``1.13``; a version without dots is returned as is.
    """
    return ".".join(version.split(".")[:2])


def resolve_tags(ref: Optional[str] = None, tag: Optional[str] = None) -> VersionTags:
    """
    Computes the tag set for a build.

    A ``refs/tags/...`` ref takes precedence over an explicit tag.

    :param ref: Git ref of the triggering event, e.g. ``refs/tags/1.13.7``.
    :param tag: Explicit release tag.
    :return: Release tags, or ``master`` when no tag applies.
    :raises PipelineError: If a release version or its short form is empty.
    """
    if ref and ref.startswith(TAG_REF_PREFIX):
        tag = ref[len(TAG_REF_PREFIX):]
        if not tag:
            raise PipelineError("empty VERSION")

    if not tag:
        return VersionTags()

    version = tag
    short = short_version(version)
    if not short:
        raise PipelineError("empty VERSION_SHORT")

    print(f"Version: {version}")
    print(f"Short version: {short}")
    return VersionTags(
        version=version,
        short_version=short,
        tags=[version, short, "latest"],
    )
