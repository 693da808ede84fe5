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
Scoped lifetime of the container under test and its bind-mounted directories.
"""
import os
import shutil
import signal
import tempfile
import threading
from typing import Dict, Optional

from ..errors import PipelineError
from ..MODELS.pipeline_context import PipelineContext
from ..MODELS.smoke_settings import SmokeSettings
from ..RUNNERS.docker_cli import DockerCLI

SAMPLE_SOURCE = "// Test source file\n"


def _terminate(signum, frame):
    raise SystemExit(128 + signum)


class SmokeSession:
    """
    Creates the source and data directories, starts the container with both
    bind-mounted, and tears all of it down on exit.

    Use as a context manager. Teardown runs exactly once however the block
    is left: normally, through an exception, or through SIGTERM, which is
    turned into ``SystemExit`` while the session is open.
    """
    def __init__(self, docker: DockerCLI, settings: SmokeSettings, context: PipelineContext):
        """
        :param docker: Docker command wrapper.
        :param settings: Mount points, sample source name, port publishing.
        :param context: Run state; receives the container id and directories.
        """
        self.docker = docker
        self.settings = settings
        self.context = context
        self._cleaned = True
        self._previous_handler = None

    @property
    def container_id(self) -> Optional[str]:
        return self.context.container_id

    def __enter__(self) -> "SmokeSession":
        self._install_signal_handler()
        self._cleaned = False
        try:
            self.start()
        except BaseException:
            self.cleanup()
            raise
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.cleanup()

    def prepare_directories(self) -> Dict[str, str]:
        """
        Creates the host directories and seeds the source tree.

        :return: Host path to container path mounts.
        """
        self.context.src_dir = tempfile.mkdtemp(prefix="opengrok-test-src-")
        self.context.data_dir = tempfile.mkdtemp(prefix="opengrok-test-data-")
        print("Created test directories:")
        print(f"  Source: {self.context.src_dir}")
        print(f"  Data:   {self.context.data_dir}")

        with open(os.path.join(self.context.src_dir, self.settings.sample_source), 'w') as f:
            f.write(SAMPLE_SOURCE)

        return {
            self.context.src_dir: self.settings.src_mount,
            self.context.data_dir: self.settings.data_mount,
        }

    def start(self) -> str:
        """
        Starts the container.

        :raises PipelineError: If the runtime returns no container id.
        """
        mounts = self.prepare_directories()
        image = self.context.test_image
        print(f"Testing image: {image}")
        print("Starting container with volume mounts...")
        container_id = self.docker.run_detached(
            image, mounts, publish_ports=self.settings.publish_ports
        )
        if not container_id:
            raise PipelineError("Failed to start container")

        self.context.container_id = container_id
        print(f"Container started: {container_id}")
        print(self.docker.ps_all())
        return container_id

    def cleanup(self) -> None:
        """
        Stops and removes the container and deletes both directories.

        Safe to call repeatedly; only the first call does any work.
        """
        if self._cleaned:
            return
        self._cleaned = True
        print("Cleaning up...")
        try:
            self._remove_container()
        finally:
            try:
                self._remove_directories()
            finally:
                self._restore_signal_handler()
        print("Cleanup complete")

    def _remove_container(self) -> None:
        container_id = self.context.container_id
        if not container_id:
            return
        # Already stopped or removed containers are fine here
        self.docker.stop(container_id)
        self.docker.remove(container_id)
        self.context.container_id = None

    def _remove_directories(self) -> None:
        for attr in ("src_dir", "data_dir"):
            path = getattr(self.context, attr)
            if path:
                shutil.rmtree(path, ignore_errors=True)
                setattr(self.context, attr, None)

    def _install_signal_handler(self) -> None:
        if threading.current_thread() is threading.main_thread():
            self._previous_handler = signal.signal(signal.SIGTERM, _terminate)

    def _restore_signal_handler(self) -> None:
        if self._previous_handler is not None:
            signal.signal(signal.SIGTERM, self._previous_handler)
            self._previous_handler = None
