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
CI inputs read from the environment of the workflow run.
"""
from typing import Mapping, Optional
from pydantic import BaseModel, Field, SecretStr


class CISettings(BaseModel):
    """
    Values the CI system hands to the pipeline.

    Field aliases are the environment variable names used by the workflow.
    """
    ref: Optional[str] = Field(default=None, alias="OPENGROK_REF")
    tag: Optional[str] = Field(default=None, alias="OPENGROK_TAG")
    event_name: str = Field(default="", alias="GITHUB_EVENT_NAME")
    repo_slug: str = Field(default="", alias="OPENGROK_REPO_SLUG")
    docker_username: str = Field(default="", alias="DOCKER_USERNAME")
    docker_pat: SecretStr = Field(default=SecretStr(""), alias="DOCKER_PAT")

    @classmethod
    def from_environment(cls, env: Mapping[str, Optional[str]]) -> "CISettings":
        """
        Builds settings from an environment mapping.

        Unset and ``None`` values fall back to the field defaults.
        """
        names = [field.alias for field in cls.model_fields.values()]
        values = {name: env[name] for name in names if env.get(name) is not None}
        return cls.model_validate(values)
