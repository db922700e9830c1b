"""
Image cache service: http.cat images cached on local disk.
"""

import argparse
import sys
from typing import List, Optional

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import CacheServiceException, ServiceError, StorageError
from shared.metrics import MetricsCollector
from .caching import CacheCoordinator
from .keys import CacheKey
from .origin import HttpCatClient, OriginFetcher
from .storage import FileKeyStore, KeyStore

SERVICE_NAME = "cache"
ALLOWED_METHODS = ["GET", "PUT", "DELETE"]
IMAGE_MEDIA_TYPE = "image/jpeg"


def request_key(request: Request) -> str:
    """Request target without the leading slash, undecoded and with its query."""
    raw_path = request.scope.get("raw_path") or request.url.path.encode("utf-8")
    target = raw_path.decode("latin-1")
    query = request.scope.get("query_string", b"")
    if query:
        target = f"{target}?{query.decode('latin-1')}"
    return target[1:] if target.startswith("/") else target


class CacheService(BaseService):
    """Image cache service implementation."""

    def __init__(
        self,
        config: ServiceConfig,
        *,
        store: Optional[KeyStore] = None,
        fetcher: Optional[OriginFetcher] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        super().__init__(config, metrics=metrics)
        self.store = store or FileKeyStore(config.cache_dir)

        if not config.origin_enabled:
            if fetcher is not None:
                raise ValueError("An origin fetcher was given but the origin is disabled")
        elif fetcher is None and config.effective_origin_url:
            fetcher = HttpCatClient(config.effective_origin_url, timeout=config.origin_timeout, metrics=self.metrics)
        self.fetcher = fetcher

        self.coordinator = CacheCoordinator(self.store, self.fetcher, metrics=self.metrics)

        @self.app.on_event("shutdown")
        async def _shutdown():
            aclose = getattr(self.fetcher, "aclose", None)
            if aclose is not None:
                await aclose()

        self._setup_cache_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.cache_service = self

    def _setup_cache_routes(self):
        """Mount the single catch-all route that owns the key space."""

        @self.app.api_route("/{raw_key:path}", methods=ALLOWED_METHODS, include_in_schema=False)
        async def cache_entry(request: Request) -> Response:
            """Serve, store or delete the image cached under ``/<code>``."""
            # Unsupported methods never get here: routing answers 405 first.
            # The key is the raw target: percent-escapes and queries make it invalid.
            key = CacheKey.parse(request_key(request))
            try:
                return await self._dispatch(request, key)
            except CacheServiceException:
                raise
            except Exception as exc:
                self.logger.error(
                    "Unexpected cache failure",
                    key=key.value,
                    method=request.method,
                    error=str(exc),
                    exc_info=True
                )
                raise ServiceError(details={"key": key.value}) from exc

    async def _dispatch(self, request: Request, key: CacheKey) -> Response:
        if request.method == "GET":
            result = await self.coordinator.get(key)
            return Response(content=result.unwrap(), media_type=IMAGE_MEDIA_TYPE)

        if request.method == "PUT":
            # Whole body is buffered before the write starts; no size limit.
            data = await request.body()
            await self.coordinator.put(key, data)
            return PlainTextResponse("Created\n", status_code=201)

        result = await self.coordinator.delete(key)
        result.unwrap()
        return PlainTextResponse("OK\n", status_code=200)


def create_app(
    config: ServiceConfig,
    *,
    store: Optional[KeyStore] = None,
    fetcher: Optional[OriginFetcher] = None,
    metrics: Optional[MetricsCollector] = None,
):
    """Create FastAPI application."""
    service = CacheService(config, store=store, fetcher=fetcher, metrics=metrics)
    return service.app


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    # -h is taken by --host, so help is only available as --help.
    parser = argparse.ArgumentParser(
        prog="httpcat-cache",
        description="Caching proxy for http.cat images.",
        add_help=False,
    )
    parser.add_argument("--help", action="help", help="Show this help message and exit")
    parser.add_argument("-h", "--host", required=True, help="Server host address")
    parser.add_argument("-p", "--port", required=True, type=int, help="Server port")
    parser.add_argument("-c", "--cache", required=True, help="Path to cache directory")
    origin = parser.add_mutually_exclusive_group()
    origin.add_argument("--origin-url", default=None, help="Origin base URL used on cache miss (default: https://http.cat/)")
    origin.add_argument("--no-origin", action="store_true", help="Serve from the cache only; never contact the origin")
    parser.add_argument("--metrics-port", type=int, default=None, help="Expose Prometheus metrics on this port")
    parser.add_argument("--log-level", default=None, help="Log level (default: info)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Parse the command line, prepare the cache directory and serve."""
    args = parse_args(argv)

    try:
        config = get_config(
            SERVICE_NAME,
            args.host,
            args.port,
            args.cache,
            origin_url=args.origin_url,
            origin_enabled=False if args.no_origin else None,
            metrics_port=args.metrics_port,
            log_level=args.log_level,
        )
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    service = CacheService(config)

    try:
        service.store.ensure_root()
    except StorageError as exc:
        service.logger.error("Failed to start server", error=exc.message, details=exc.details)
        return 1

    service.logger.info(
        "Server starting",
        url=f"http://{config.host}:{config.port}",
        cache_dir=str(config.cache_dir),
        origin=config.effective_origin_url
    )
    service.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
