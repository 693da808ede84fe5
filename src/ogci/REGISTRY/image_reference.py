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
Image reference parsing and handling.
Parses references like 'opengrok/docker' or 'ghcr.io/oracle/opengrok:1.13'.
"""

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class ImageReference:
    """
    Parsed image reference.

    Examples:
        - opengrok/docker -> registry None, repository opengrok/docker
        - opengrok/docker:1.13 -> tag 1.13
        - localhost:5000/opengrok/docker:master -> registry localhost:5000
    """

    repository: str
    registry: Optional[str] = None
    tag: Optional[str] = None

    @classmethod
    def parse(cls, reference: str) -> "ImageReference":
        """
        Parse an image reference string.

        Args:
            reference: Image reference string (e.g., 'opengrok/docker:master')

        Returns:
            Parsed ImageReference object.
        """
        if not reference:
            raise ValueError("Empty image reference")
        if "@" in reference:
            raise ValueError(f"Digest references cannot be tagged: {reference}")

        tag = None
        last_colon = reference.rfind(":")
        if last_colon != -1:
            after_colon = reference[last_colon + 1:]
            # A slash after the colon means it separated a registry port
            if "/" not in after_colon:
                tag = after_colon
                reference = reference[:last_colon]

        registry = None
        parts = reference.split("/")
        if len(parts) > 1 and ("." in parts[0] or ":" in parts[0] or parts[0] == "localhost"):
            registry = parts[0]
            parts = parts[1:]

        repository = "/".join(parts)
        if not repository or tag == "":
            raise ValueError(f"Invalid image reference: {reference}")

        return cls(repository=repository, registry=registry, tag=tag)

    def with_tag(self, tag: str) -> "ImageReference":
        return replace(self, tag=tag)

    @property
    def name(self) -> str:
        """Reference without its tag."""
        if self.registry:
            return f"{self.registry}/{self.repository}"
        return self.repository

    def __str__(self) -> str:
        if self.tag:
            return f"{self.name}:{self.tag}"
        return self.name
