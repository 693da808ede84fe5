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
Thin wrapper over the ``docker`` command line.
"""
from typing import Dict, List, Optional, Sequence

from ..errors import PipelineError
from .process_runner import CommandResult, ProcessRunner

IP_ADDRESS_FORMAT = "{{range.NetworkSettings.Networks}}{{.IPAddress}}{{end}}"


class DockerCLI:
    """
    Issues container runtime commands through a process runner.

    Every method maps to one ``docker`` invocation. Methods that only
    inspect return their result; methods whose failure is always fatal
    raise ``PipelineError``.
    """
    def __init__(self, runner: Optional[ProcessRunner] = None, binary: str = "docker"):
        self.runner = runner or ProcessRunner("docker")
        self.binary = binary

    def _run(self, *args: str, **kwargs) -> CommandResult:
        return self.runner.run([self.binary, *args], **kwargs)

    def lint(self, dockerfile_text: str, linter_image: str) -> CommandResult:
        """Runs the linter image with the Dockerfile on stdin."""
        return self._run("run", "--rm", "-i", linter_image, input_text=dockerfile_text)

    def build(self, refs: Sequence[str], context: str = ".",
              dockerfile: Optional[str] = None) -> CommandResult:
        args: List[str] = ["buildx", "build"]
        for ref in refs:
            args.extend(["-t", ref])
        if dockerfile:
            args.extend(["-f", dockerfile])
        args.append(context)
        return self._run(*args, capture_output=False)

    def run_detached(self, image: str, mounts: Dict[str, str],
                     publish_ports: bool = False) -> str:
        """
        Starts a container in the background.

        :param image: Image reference to run.
        :param mounts: Host directory to container path bind mounts.
        :param publish_ports: Publish exposed ports to random host ports.
        :return: The container id, empty if the runtime printed none.
        """
        args: List[str] = ["run", "-d"]
        for host_path, container_path in mounts.items():
            args.extend(["-v", f"{host_path}:{container_path}"])
        if publish_ports:
            args.append("-P")
        args.append(image)
        result = self._run(*args)
        if not result.ok:
            print(result.output)
            return ""
        return result.stdout.strip()

    def ps_all(self) -> str:
        return self._run("ps", "-a").stdout

    def is_running(self, container_id: str) -> bool:
        """True when the container shows up among running containers."""
        result = self._run("ps", "-q", "--no-trunc")
        if not result.ok or not container_id:
            return False
        return any(running.startswith(container_id) for running in result.stdout.split())

    def logs(self, container_id: str) -> str:
        """Container output with stderr folded into stdout."""
        return self._run("logs", container_id, merge_stderr=True).stdout

    def exec(self, container_id: str, *command: str) -> CommandResult:
        return self._run("exec", container_id, *command)

    def container_ip(self, container_id: str) -> str:
        result = self._run("inspect", "-f", IP_ADDRESS_FORMAT, container_id)
        return result.stdout.strip() if result.ok else ""

    def mapped_port(self, container_id: str, port: int) -> Optional[str]:
        """
        Host address a published container port is reachable on.

        :return: ``host:port`` or None when the port is not published.
        """
        result = self._run("port", container_id, f"{port}/tcp")
        if not result.ok:
            return None
        for line in result.stdout.splitlines():
            line = line.strip()
            if not line:
                continue
            host, _, host_port = line.rpartition(":")
            if host in ("0.0.0.0", "[::]", "::", ""):
                host = "localhost"
            return f"{host}:{host_port}"
        return None

    def stop(self, container_id: str) -> bool:
        return self._run("stop", container_id).ok

    def remove(self, container_id: str) -> bool:
        return self._run("rm", container_id).ok

    def login(self, username: str, token: str) -> None:
        """Logs in to the registry with the token piped on stdin."""
        result = self._run("login", "-u", username, "--password-stdin", input_text=token)
        if not result.ok:
            raise PipelineError(f"docker login failed for {username}: {result.output}")

    def push(self, ref: str) -> None:
        result = self._run("push", ref, capture_output=False)
        if not result.ok:
            raise PipelineError(f"docker push failed for {ref}")
