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
Settings for building, smoke-testing and publishing the image.
"""
from typing import List
from pydantic import BaseModel, ConfigDict, Field


class SmokeSettings(BaseModel):
    """
    Tunables for one pipeline run.

    The defaults describe the OpenGrok image: a Tomcat web application on
    port 8080, the REST API on port 5000, and source/data volumes owned by
    ``appuser:appgroup``.
    """
    model_config = ConfigDict(extra="forbid")

    # Build
    image: str = "opengrok/docker"
    dockerfile: str = "Dockerfile"
    build_context: str = "."
    linter_image: str = "hadolint/hadolint:2.6.0"

    # Readiness
    startup_marker: str = "Server startup in"
    poll_interval: float = Field(default=3, gt=0)
    max_wait: float = Field(default=90, gt=0)

    # Endpoints
    web_port: int = 8080
    api_port: int = 5000
    web_attempts: int = Field(default=3, gt=0)
    web_retry_delay: float = Field(default=5, ge=0)
    http_timeout: float = Field(default=10, gt=0)
    publish_ports: bool = False

    # Container filesystem
    expected_owner: str = "appuser:appgroup"
    src_mount: str = "/opengrok/src"
    data_mount: str = "/opengrok/data"
    owned_paths: List[str] = ["/opengrok/etc", "/usr/local/tomcat/webapps"]
    index_path: str = "/opengrok/data/index"
    sample_source: str = "test.java"

    # Logs
    error_pattern: str = r"^(ERROR|FATAL)"
    fatal_token: str = "FATAL"

    # Publishing
    canonical_repo: str = "oracle/opengrok"
    pull_request_events: List[str] = ["pull_request"]

    @property
    def mounts(self) -> List[str]:
        return [self.src_mount, self.data_mount]

    @property
    def required_paths(self) -> List[str]:
        """Paths that must exist and belong to the application account."""
        return self.mounts + self.owned_paths
