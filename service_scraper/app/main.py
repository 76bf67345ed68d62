"""
Scraper Access Service.

Exposes ``GET /api/scraper/getData?url=<target>`` in front of the scraping
API, serving from Redis when possible and otherwise fetching through the
shared outbound rate limiter.
"""

from typing import Dict, Optional

from fastapi import Query
from fastapi.responses import PlainTextResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import ConfigurationError, ValidationError
from shared.responses import internal_server_error, ok
from shared.retry import RetryConfig
from shared.tracing import mark_span_error
from .adapters.upstream_client import ScraperApiClient
from .caching.cache_store import RedisCacheStore
from .credentials.rotator import CredentialRotator
from .domain.orchestrator import CacheStore, FetchOrchestrator, Fetcher
from .ratelimit.outbound import OutboundRateLimiter


MSG_URL_REQUIRED = "Target URL is required"
MSG_CREDENTIALS_MISSING = "Missing SCRAPER_API_KEYS"
MSG_FETCH_FAILED = "Failed to fetch data from ScraperAPI"


class ScraperService(BaseService):
    """Scraper service implementation.

    Collaborators may be injected for tests; by default they are built from
    configuration.
    """

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        cache: Optional[CacheStore] = None,
        fetcher: Optional[Fetcher] = None,
        limiter: Optional[OutboundRateLimiter] = None,
    ):
        super().__init__("scraper", config)

        self.rotator: Optional[CredentialRotator] = None
        try:
            self.rotator = CredentialRotator(self.config.credential_pool())
        except ConfigurationError as e:
            # Requests are rejected with a configuration error until keys are provided
            self.logger.error("Credential pool is empty", setting="SCRAPER_API_KEYS", error=e.message)

        self.cache_store = cache if cache is not None else RedisCacheStore(self.config.redis_url)
        self.limiter = limiter if limiter is not None else OutboundRateLimiter(
            min_interval=self.config.throttle_min_ms / 1000.0,
            reservoir=self.config.reservoir_per_min,
            refresh_interval=self.config.reservoir_refresh_ms / 1000.0,
            max_queue_depth=self.config.limiter_max_queue,
            metrics=self.metrics,
        )

        self.upstream_client: Optional[ScraperApiClient] = None
        if fetcher is None and self.rotator is not None:
            self.upstream_client = ScraperApiClient(
                self.config.scraper_api_url,
                self.config.country_code,
                self.rotator,
                retry_config=RetryConfig(
                    max_retries=self.config.retry_max,
                    base_delay=self.config.retry_base_delay_ms / 1000.0,
                    jitter=self.config.retry_jitter_ms / 1000.0,
                ),
                timeout=self.config.upstream_timeout_sec,
                metrics=self.metrics,
            )
            fetcher = self.upstream_client

        self.orchestrator: Optional[FetchOrchestrator] = None
        if fetcher is not None and self.rotator is not None:
            self.orchestrator = FetchOrchestrator(
                self.cache_store,
                self.limiter,
                fetcher,
                region=self.config.country_code,
                ttl=self.config.cache_ttl_sec,
                prefetch_jitter=self.config.prefetch_jitter_ms / 1000.0,
                coalesce_inflight=self.config.coalesce_inflight,
                metrics=self.metrics,
            )

        self._setup_scraper_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.scraper_service = self

    def _setup_scraper_routes(self):
        """Set up scraper routes."""

        @self.app.get("/", response_class=PlainTextResponse)
        async def root():
            return "---- Scraper API ----"

        @self.app.get("/api/scraper/getData")
        async def get_scraped_data(url: Optional[str] = Query(default=None)):
            """Return the upstream payload for ``url``."""
            if not url or not url.strip():
                raise ValidationError(MSG_URL_REQUIRED, details={"param": "url"})
            if self.orchestrator is None:
                raise ConfigurationError(MSG_CREDENTIALS_MISSING, details={"setting": "SCRAPER_API_KEYS"})

            try:
                data = await self.orchestrator.get_with_cache(url)
            except Exception as e:
                self.logger.error("Scraper failed", target=url, error=str(e), error_type=e.__class__.__name__)
                self.metrics.record_error(getattr(e, "code", "INTERNAL_ERROR"))
                mark_span_error(MSG_FETCH_FAILED)
                return internal_server_error(MSG_FETCH_FAILED)

            return ok("Success", data)

    async def startup(self):
        if self.rotator is None:
            self.logger.warning("Starting without upstream credentials")
        self.logger.info(
            "Scraper service started",
            region=self.config.country_code,
            throttle_min_ms=self.config.throttle_min_ms,
            reservoir_per_min=self.config.reservoir_per_min,
            cache_ttl_sec=self.config.cache_ttl_sec,
        )

    async def shutdown(self):
        if self.upstream_client is not None:
            await self.upstream_client.close()
        close = getattr(self.cache_store, "close", None)
        if close is not None:
            await close()
        self.logger.info("Scraper service stopped")

    async def _check_dependencies(self) -> Dict[str, str]:
        dependencies = {
            "credentials": f"{self.rotator.size} configured" if self.rotator else "missing",
            "limiter": "pending={pending} remaining={remaining}".format(**self.limiter.stats()),
        }
        ping = getattr(self.cache_store, "ping", None)
        if ping is not None:
            dependencies["redis"] = "ok" if await ping() else "unavailable"
        return dependencies


def create_app():
    """Create FastAPI application."""
    service = ScraperService()
    return service.app


def main():
    """Run the service with uvicorn."""
    service = ScraperService()
    service.run()


if __name__ == "__main__":
    main()
