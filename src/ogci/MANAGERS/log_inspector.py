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
Inspection of container log output.
"""
import re
from typing import List

from ..MODELS.smoke_settings import SmokeSettings


class LogInspector:
    """
    Scans container logs for startup and error markers.
    """
    def __init__(self, settings: SmokeSettings):
        """
        Initializes the log inspector.

        :param settings: Startup marker, error pattern and fatal token.
        """
        self.settings = settings
        self._error_re = re.compile(settings.error_pattern, re.IGNORECASE)

    def error_lines(self, logs: str) -> List[str]:
        """Lines that start with an error or fatal level marker."""
        return [line for line in logs.splitlines() if self._error_re.search(line)]

    def count_errors(self, logs: str) -> int:
        return len(self.error_lines(logs))

    def has_fatal_token(self, logs: str) -> bool:
        """True if the fatal token appears anywhere, case-sensitive."""
        return self.settings.fatal_token in logs

    def has_startup_marker(self, logs: str) -> bool:
        return self.settings.startup_marker in logs
