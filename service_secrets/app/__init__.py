"""
Secrets Manager caching proxy application package.

The proxy speaks the Secrets Manager JSON protocol to its clients and
forwards to the real service, answering secret lookups from memory where
it can:
- GetSecretValue: served from the cache per (identifier, version stage)
- BatchGetSecretValue: cache hits merged with concurrently fetched chunks
- Other supported operations: forwarded verbatim

Structure:
- app.main: FastAPI app, the wire endpoint and cache admin routes.
- app.forwarding: Operation dispatch, chunk planning and result merging.
- app.caching: In-memory secret cache.
- app.adapters: boto3-backed Secrets Manager client.
- app.wire: PascalCase <-> snake_case key conversion.
"""
