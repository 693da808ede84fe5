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
Verification of the container's HTTP endpoints and mounted volumes.
"""
import http.client
import time
from dataclasses import dataclass
from typing import Callable, List, Sequence
from urllib.error import HTTPError
from urllib.request import Request, urlopen

from tenacity import Retrying, RetryCallState, retry_if_result, stop_after_attempt, wait_fixed

from ..errors import PipelineError
from ..MODELS.smoke_report import CheckResult, SmokeReport
from ..MODELS.smoke_settings import SmokeSettings
from .container_probe import ContainerProbe

# Status reported when no HTTP response arrived at all
NO_RESPONSE = 0


@dataclass
class HttpResponse:
    """Status code and body of a GET request."""

    status: int
    body: str = ""
    error: str = ""

    @property
    def status_text(self) -> str:
        return f"{self.status:03d}"


def http_get(url: str, timeout: float) -> HttpResponse:
    """
    Issues a GET request.

    Error statuses are returned like any other response. Connection
    failures and timeouts are reported with status ``NO_RESPONSE``.
    """
    request = Request(url)
    try:
        with urlopen(request, timeout=timeout) as response:
            body = response.read().decode("utf-8", errors="replace")
            return HttpResponse(status=response.status, body=body)
    except HTTPError as e:
        body = e.read().decode("utf-8", errors="replace") if e.fp else ""
        return HttpResponse(status=e.code, body=body)
    except (OSError, http.client.HTTPException) as e:
        return HttpResponse(status=NO_RESPONSE, error=str(e))


HttpGet = Callable[[str, float], HttpResponse]


class EndpointVerifier:
    """
    Probes the web interface and the REST API of the container.

    Both checks are advisory: a failure is recorded as a warning on the
    report and never aborts the run.
    """

    def __init__(
        self,
        settings: SmokeSettings,
        http_get: HttpGet = http_get,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initializes the verifier.

        :param settings: Ports, attempts, delays and timeouts.
        :param http_get: GET function, replaceable in tests.
        :param sleep: Sleep function used between web attempts.
        """
        self.settings = settings
        self.http_get = http_get
        self.sleep = sleep

    def _get(self, url: str) -> HttpResponse:
        return self.http_get(url, self.settings.http_timeout)

    @staticmethod
    def _log_attempt(retry_state: RetryCallState) -> None:
        response = retry_state.outcome.result()
        print(f"  Attempt {retry_state.attempt_number}: HTTP {response.status_text}, retrying...")

    def check_web(self, url: str, report: SmokeReport) -> CheckResult:
        """
        GETs the web interface until it answers 200 or attempts run out.

        :param url: Base URL of the web interface.
        :param report: Report that receives the result and any warning.
        """
        print(f"Testing web interface at {url}...")
        retrying = Retrying(
            stop=stop_after_attempt(self.settings.web_attempts),
            wait=wait_fixed(self.settings.web_retry_delay),
            retry=retry_if_result(lambda response: response.status != 200),
            before_sleep=self._log_attempt,
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
            sleep=self.sleep,
        )
        response = retrying(self._get, url)

        if response.status == 200:
            print(f"✓ Web interface is accessible (HTTP {response.status})")
            return report.record(CheckResult(name="web", ok=True, detail=f"HTTP {response.status}"))

        report.add_warning(
            f"Web interface is not accessible after {self.settings.web_attempts} attempts "
            f"(HTTP {response.status_text})"
        )
        return report.record(CheckResult(name="web", ok=False, detail=f"HTTP {response.status_text}"))

    def check_api(self, url: str, report: SmokeReport) -> CheckResult:
        """
        GETs the REST API once.

        Without a token the API answers 404, so any response counts.
        """
        print(f"Testing REST API at {url}...")
        response = self._get(url)
        if response.status != NO_RESPONSE:
            print(f"✓ REST API is responding (HTTP {response.status})")
            return report.record(CheckResult(name="api", ok=True, detail=f"HTTP {response.status}"))

        report.add_warning("REST API not accessible")
        return report.record(CheckResult(name="api", ok=False, detail=response.error))


def check_mounts_writable(probe: ContainerProbe, paths: Sequence[str], report: SmokeReport) -> None:
    """
    Verifies every mount point is writable inside the container.

    :raises PipelineError: If any of them is not.
    """
    print("Checking volume mounts...")
    unwritable = [path for path in paths if not probe.is_writable(path)]
    if unwritable:
        raise PipelineError(f"Volume mounts are not writable: {', '.join(unwritable)}")
    print("✓ Volume mounts are writable")
    report.record(CheckResult(name="writable", ok=True, detail=", ".join(paths)))


def check_ownership(
    probe: ContainerProbe,
    paths: Sequence[str],
    expected: str,
    report: SmokeReport,
) -> List[CheckResult]:
    """
    Compares the owner of each path with the expected ``user:group``.

    Mismatches are warnings only.
    """
    print("Checking file ownership...")
    results = []
    for path in paths:
        owner = probe.ownership(path)
        print(f"  {path} owner: {owner}")
        results.append(report.record(
            CheckResult(name=f"owner {path}", ok=owner == expected, detail=owner)
        ))

    if all(result.ok for result in results):
        print("✓ File ownership is correct")
    else:
        report.add_warning(f"File ownership may be incorrect (expected {expected})")
    return results
