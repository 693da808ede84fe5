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
Execution of external commands with captured output and exit status.
"""
import subprocess
from typing import List, Optional, Sequence
from pydantic import BaseModel

from ..errors import PipelineError


class CommandResult(BaseModel):
    """
    Output and exit status of one finished command.
    """
    args: List[str]
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        """Stripped stdout, falling back to stderr when stdout is empty."""
        return (self.stdout or self.stderr).strip()


class ProcessRunner:
    """
    Runs system commands and reports (stdout, stderr, exit code).

    A non-zero exit status is returned, not raised; callers decide whether
    a failure is fatal. Tests substitute any object with the same ``run``
    signature.
    """
    def __init__(self, name: str = "ogci"):
        """
        Initializes the process runner.

        Args:
            name (str): Prefix used when echoing commands.
        """
        self.name = name

    def run(self,
            args: Sequence[str],
            input_text: Optional[str] = None,
            merge_stderr: bool = False,
            capture_output: bool = True,
            timeout: Optional[float] = None) -> CommandResult:
        """
        Runs a command to completion.

        Args:
            args (Sequence[str]): Command and arguments to execute.
            input_text (Optional[str]): Text fed to the command's stdin.
            merge_stderr (bool): Fold stderr into stdout, like ``2>&1``.
            capture_output (bool): When False the command writes straight to
                the console and only the exit code is reported.
            timeout (Optional[float]): Seconds before the command is killed.

        Returns:
            CommandResult: The finished command.
        """
        command = list(args)
        if capture_output:
            stdout = subprocess.PIPE
            stderr = subprocess.STDOUT if merge_stderr else subprocess.PIPE
        else:
            stdout = None
            stderr = None

        try:
            completed = subprocess.run(
                command,
                input=input_text,
                stdout=stdout,
                stderr=stderr,
                timeout=timeout,
                text=True,
                encoding="utf-8",
                errors="replace",
                # Avoid shell=True for security reasons (CWE-78)
                shell=False,
            )
        except FileNotFoundError as e:
            raise PipelineError(f"[{self.name}] Command not found: {command[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise PipelineError(
                f"[{self.name}] Command timed out after {timeout}s: {' '.join(command)}"
            ) from e

        return CommandResult(
            args=command,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            exit_code=completed.returncode,
        )
