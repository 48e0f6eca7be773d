"""
Secrets Manager caching proxy service.
"""

from typing import Any, Dict, Optional

from fastapi import Header, Request, Response

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import MissingTarget
from .adapters.backend import SecretsBackend
from .adapters.secrets_manager_client import SecretsManagerClient
from .caching.secrets_cache import SecretsCache
from .forwarding.forwarder import SecretsManagerForwarder

SERVICE_NAME = "secrets_proxy"


class SecretsProxyService(BaseService):
    """Caching proxy speaking the Secrets Manager JSON protocol."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        backend: Optional[SecretsBackend] = None,
        cache: Optional[SecretsCache] = None,
    ):
        super().__init__(SERVICE_NAME, config or get_config(SERVICE_NAME))
        self.cache = cache if cache is not None else SecretsCache()
        self.backend = backend if backend is not None else SecretsManagerClient(
            self.config.aws_region,
            endpoint_url=self.config.aws_endpoint_url,
            timeout_seconds=self.config.backend_timeout_seconds,
            metrics=self.metrics,
        )
        self.forwarder = SecretsManagerForwarder(
            self.backend,
            self.cache,
            max_batch_size=self.config.max_batch_size,
            metrics=self.metrics,
        )

        self.logger.info(
            "Secrets proxy configured",
            region=self.config.aws_region,
            endpoint_url=self.config.aws_endpoint_url,
            max_batch_size=self.config.max_batch_size,
        )

        self._setup_proxy_routes()

    def _setup_proxy_routes(self):
        """Set up the Secrets Manager endpoint and cache admin routes."""

        @self.app.post("/")
        async def forward(request: Request, x_amz_target: Optional[str] = Header(None)):
            """Secrets Manager JSON endpoint; the operation comes from X-Amz-Target."""
            if not x_amz_target:
                raise MissingTarget("Missing X-Amz-Target header")

            body = await request.body()
            result = await self.forwarder.forward(x_amz_target, body)
            return Response(content=result.body, status_code=result.status, headers=result.headers)

        @self.app.get("/cache/stats")
        async def cache_stats():
            """Current cache size."""
            return {"entries": self.cache.size()}

        @self.app.delete("/cache")
        async def clear_cache():
            """Drop every cached secret."""
            cleared = self.cache.reset()
            self.metrics.set_cache_entries(0)
            return {"cleared": cleared}

    async def _check_dependencies(self) -> Dict[str, Any]:
        """Report cache state; Secrets Manager is not probed."""
        return {"cache": {"status": "ok", "entries": self.cache.size()}}


def create_app():
    """Create FastAPI application."""
    service = SecretsProxyService()
    return service.app


def main():
    """Console entry point."""
    service = SecretsProxyService()
    service.run()


if __name__ == "__main__":
    main()
