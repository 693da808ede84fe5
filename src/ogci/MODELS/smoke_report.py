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
Results collected while smoke-testing a container.
"""
from typing import List, Optional
from pydantic import BaseModel


class CheckResult(BaseModel):
    """Outcome of a single verification."""
    name: str
    ok: bool
    detail: str = ""


class SmokeReport(BaseModel):
    """
    Everything a smoke run observed.

    Fatal conditions never end up here, they abort the run. Non-fatal
    problems are kept in ``warnings`` and do not change the exit status.
    """
    container_id: Optional[str] = None
    waited: float = 0
    checks: List[CheckResult] = []
    warnings: List[str] = []

    def record(self, check: CheckResult) -> CheckResult:
        self.checks.append(check)
        return check

    def add_warning(self, message: str) -> None:
        print(f"WARNING: {message}")
        self.warnings.append(message)

    @property
    def passed(self) -> bool:
        return not self.warnings

    def summary(self) -> str:
        lines = [f"{'CHECK':24} {'RESULT':8} DETAIL", "-" * 48]
        for check in self.checks:
            result = "ok" if check.ok else "warn"
            lines.append(f"{check.name:24} {result:8} {check.detail}")
        if self.warnings:
            lines.append(f"{len(self.warnings)} warning(s)")
        return "\n".join(lines)
