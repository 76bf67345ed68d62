"""
Scraping API client with transient-failure retry.
"""

import asyncio
import json
import random
import time
from typing import Any, Awaitable, Callable, Dict, Optional, TYPE_CHECKING

import httpx

from shared.errors import UpstreamError
from shared.logging import get_logger
from shared.retry import RetryConfig, RetryDecision, retry_async
from shared.tracing import add_span_attributes
from ..credentials.rotator import CredentialRotator

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


# Common desktop user agents for rotation
USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Safari/605.1.15",
    "Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:118.0) Gecko/20100101 Firefox/118.0",
]

# Network faults worth retrying: timeouts, resets, DNS/connect failures, aborted responses
TRANSIENT_TRANSPORT_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


def is_transient_status(status_code: int) -> bool:
    return status_code == 429 or 500 <= status_code < 600


def classify_attempt(result: Any, error: Optional[BaseException]) -> RetryDecision:
    """Map an attempt outcome to a retry decision."""
    if error is None:
        return RetryDecision.SUCCEED
    if isinstance(error, UpstreamError) and error.transient:
        return RetryDecision.RETRY
    return RetryDecision.FAIL


def parse_payload(response: httpx.Response) -> Any:
    """Return the body as structured data when it is JSON, otherwise as text."""
    text = response.text
    if not text:
        return text
    try:
        return json.loads(text)
    except ValueError:
        return text


class ScraperApiClient:
    """Fetches target URLs through the scraping API.

    Every attempt uses a freshly rotated API key and a random user agent.
    """

    def __init__(
        self,
        base_url: str,
        region: str,
        rotator: CredentialRotator,
        *,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 60.0,
        metrics: Optional["MetricsCollector"] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.base_url = base_url
        self.region = region
        self.rotator = rotator
        self.retry_config = retry_config or RetryConfig()
        self.metrics = metrics
        self.logger = get_logger("scraper.upstream")
        self._sleep = sleep
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True)

    def build_params(self, target: str, api_key: str) -> Dict[str, str]:
        return {
            "api_key": api_key,
            "render": "false",
            "country_code": self.region,
            "url": target,
        }

    async def _attempt(self, target: str, attempt: int) -> Any:
        params = self.build_params(target, self.rotator.next())
        headers = {"User-Agent": random.choice(USER_AGENTS)}

        start = time.perf_counter()
        try:
            response = await self._client.get(self.base_url, params=params, headers=headers)
        except TRANSIENT_TRANSPORT_ERRORS as exc:
            self._record("transient", start)
            raise UpstreamError(
                f"Network error: {exc.__class__.__name__}",
                transient=True,
                details={"target": target, "attempt": attempt}
            ) from exc
        except httpx.HTTPError as exc:
            self._record("terminal", start)
            raise UpstreamError(
                f"Request error: {exc.__class__.__name__}",
                details={"target": target, "attempt": attempt}
            ) from exc

        add_span_attributes(**{"upstream.status_code": response.status_code, "upstream.attempt": attempt})

        if response.is_success:
            self._record("success", start)
            self.logger.debug("Upstream fetch succeeded", target=target, status_code=response.status_code, attempt=attempt)
            return parse_payload(response)

        transient = is_transient_status(response.status_code)
        self._record("transient" if transient else "terminal", start)
        self.logger.warning(
            "Upstream request failed",
            target=target,
            status_code=response.status_code,
            transient=transient,
            attempt=attempt
        )
        raise UpstreamError(
            f"Unexpected status {response.status_code}",
            status_code=response.status_code,
            transient=transient,
            details={"target": target, "attempt": attempt, "body": response.text[:500]}
        )

    def _record(self, outcome: str, start: float):
        if self.metrics is None:
            return
        self.metrics.increment_counter("upstream_requests_total", outcome=outcome)
        self.metrics.observe_histogram("upstream_request_duration_seconds", time.perf_counter() - start)

    def _on_retry(self, attempt: int, delay: float):
        if self.metrics is not None:
            self.metrics.increment_counter("upstream_retries_total")

    async def fetch(self, target: str) -> Any:
        """Fetch ``target``, retrying transient failures per the retry config."""
        return await retry_async(
            lambda attempt: self._attempt(target, attempt),
            classify_attempt,
            self.retry_config,
            name="upstream_fetch",
            sleep=self._sleep,
            on_retry=self._on_retry,
        )

    async def close(self):
        await self._client.aclose()
