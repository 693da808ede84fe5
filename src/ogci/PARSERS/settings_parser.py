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
Parser for YAML settings files overriding the pipeline defaults.
"""
import os
from typing import Dict, Mapping, Optional

import yaml
from pydantic import ValidationError

from ..errors import PipelineError
from ..MODELS.smoke_settings import SmokeSettings
from ..UTILS.string_interpolation import EnvironmentInterpolator


class SettingsParser:
    """
    Parser for ogci settings files.

    Values may reference environment variables as ``${VAR}`` or
    ``${VAR:-default}``. Unknown keys are rejected.
    """
    def __init__(self, context: Optional[Mapping[str, str]] = None):
        """
        Initializes the parser with an optional environment context for interpolation.

        :param context: A dictionary of environment variables for interpolation.
        """
        self.context = context if context is not None else dict(os.environ)

    def parse(self, settings_path: str) -> SmokeSettings:
        """
        Parses a settings file from a path.

        :param settings_path: Path to the YAML file.
        :return: Parsed settings.
        """
        with open(settings_path, 'r') as f:
            content = f.read()
        return self.parse_from_string(content, source=settings_path)

    def parse_from_string(self, content: str, source: str = "<string>") -> SmokeSettings:
        """
        Parses settings from a YAML string.

        :param content: YAML content.
        :param source: Name used in error messages.
        :raises PipelineError: On interpolation, YAML or validation errors.
        """
        try:
            content = EnvironmentInterpolator.interpolate(content, self.context)
        except KeyError as e:
            raise PipelineError(f"{source}: {e.args[0]}") from e

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise PipelineError(f"{source}: invalid YAML: {e}") from e
        if not data:
            data = {}
        if not isinstance(data, dict):
            raise PipelineError(f"{source}: expected a mapping at the top level")

        try:
            return SmokeSettings(**self._normalize(data))
        except ValidationError as e:
            raise PipelineError(f"{source}: {e}") from e

    def _normalize(self, data: Dict) -> Dict:
        """Accepts dashed keys (``max-wait``) as well as underscored ones."""
        return {str(key).replace('-', '_'): value for key, value in data.items()}
