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
Filesystem and process probes executed inside a running container.
"""
from typing import Callable, Sequence

from ..RUNNERS.process_runner import CommandResult

UNKNOWN_OWNER = "unknown"

ExecFunction = Callable[[Sequence[str]], CommandResult]


class ContainerProbe:
    """
    Runs small shell utilities in a container and interprets the result.

    The probe only needs an ``exec`` callable, so it works the same over
    the docker command line and over the docker SDK.
    """
    def __init__(self, exec_fn: ExecFunction):
        """
        :param exec_fn: Runs a command in the container under test.
        """
        self.exec_fn = exec_fn

    def exists(self, path: str) -> bool:
        return self.exec_fn(["test", "-e", path]).ok

    def is_writable(self, path: str) -> bool:
        return self.exec_fn(["test", "-w", path]).ok

    def ownership(self, path: str) -> str:
        """
        Owner and group of a path as ``user:group``.

        Returns ``unknown`` when the path cannot be inspected.
        """
        result = self.exec_fn(["stat", "-c", "%U:%G", path])
        if not result.ok or not result.stdout.strip():
            return UNKNOWN_OWNER
        return result.stdout.strip()

    def processes(self) -> str:
        return self.exec_fn(["ps", "aux"]).stdout
