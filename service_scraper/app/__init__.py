"""
Scraper Access Service application package.

The service fronts a third-party scraping API, enforcing:
- Cache-aside reads and write-through via Redis
- A process-wide outbound limiter (minimum spacing + per-minute reservoir)
- Round-robin API key rotation
- Bounded retries for transient upstream failures

Structure:
- app.main: FastAPI app, routes, and wiring.
- app.adapters: HTTP client for the scraping API.
- app.caching: Cache key canonicalization and the Redis store.
- app.credentials: API key rotation.
- app.ratelimit: Outbound admission control.
- app.domain: Fetch orchestration.
"""
