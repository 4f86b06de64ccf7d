"""
Rates Service package.

A small HTTP service fronting a slow external exchange-rate API with a
read-through response cache, plus user profile read/update endpoints.

Structure:
- app.main: FastAPI app, routes, and component wiring.
- app.caching: Cache key derivation, cached payload format, cache stores
  and the response cache that wraps route handlers.
- app.adapters: HTTP client for the upstream exchange-rate API.
- app.persistence: User profile stores.

Guidelines:
- The service is stateless; rely on the external cache store and DB.
- Only successful responses are cached; errors are never cached.
"""
