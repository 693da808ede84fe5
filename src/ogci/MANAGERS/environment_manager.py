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
Managers for handling environment variables and .env file resolution.
"""
import os
from typing import Dict, List, Mapping, Optional

from dotenv import dotenv_values

from ..MODELS.ci_settings import CISettings


class EnvironmentManager:
    """
    Resolves the CI inputs of a run from the process environment and .env files.
    """
    def __init__(self, base_dir: str = ".", environ: Optional[Mapping[str, str]] = None):
        """
        Initializes the environment manager.

        :param base_dir: The base directory for resolving relative paths to .env files.
        :param environ: Process environment, defaults to ``os.environ``.
        """
        self.base_dir = base_dir
        self.environ = os.environ if environ is None else environ

    def get_merged_environment(self, env_files: List[str]) -> Dict[str, Optional[str]]:
        """
        Merges .env files under the process environment.

        Later files override earlier ones; values already set in the process
        environment override every file, so CI secrets always win.

        :param env_files: A list of paths to .env files. Missing files are skipped.
        :return: The merged environment.
        """
        merged: Dict[str, Optional[str]] = {}
        for env_file in env_files:
            file_path = os.path.join(self.base_dir, env_file)
            if os.path.exists(file_path):
                merged.update(dotenv_values(file_path))
            else:
                print(f"Skipping missing env file: {file_path}")

        merged.update(self.environ)
        return merged

    def load_ci_settings(self, env_files: Optional[List[str]] = None) -> CISettings:
        return CISettings.from_environment(self.get_merged_environment(env_files or []))
