"""
Base service class for the http.cat image cache.
"""

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Optional
import time

from shared.config import ServiceConfig
from shared.logging import configure_logging, get_logger, set_request_id, clear_context
from shared.metrics import MetricsCollector, get_metrics_collector
from shared.errors import CacheServiceException


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, config: ServiceConfig, metrics: Optional[MetricsCollector] = None):
        self.config = config
        self.service_name = config.service_name
        self.logger = get_logger(f"{self.service_name}.service")
        self.metrics = metrics or get_metrics_collector(self.service_name)

        # Configure logging
        configure_logging(self.service_name, self.config.log_level)

        # Create FastAPI app
        self.app = self._create_app()

        # Set up middleware
        self._setup_middleware()

        # Set up error handlers
        self._setup_error_handlers()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application.

        Documentation routes stay unmounted: every path belongs to the
        service's own key space.
        """
        return FastAPI(
            title=f"{self.service_name.title()} Service",
            version="1.0.0",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )

    def _setup_middleware(self):
        """Set up middleware."""

        # Request timing middleware
        @self.app.middleware("http")
        async def add_request_timing(request: Request, call_next):
            start_time = time.time()
            request_id = set_request_id(request.headers.get("X-Request-ID"))

            try:
                # Process request
                response = await call_next(request)

                # Calculate duration
                duration = time.time() - start_time

                # Record metrics
                self.metrics.record_http_request(
                    method=request.method,
                    status_code=response.status_code,
                    duration=duration
                )

                # Log request
                self.logger.info(
                    "HTTP request",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round(duration * 1000, 2)
                )

                response.headers["X-Request-ID"] = request_id
                return response
            finally:
                clear_context()

    def _setup_error_handlers(self):
        """Render every error as a single plain-text line."""

        @self.app.exception_handler(CacheServiceException)
        async def cache_service_exception_handler(request: Request, exc: CacheServiceException):
            """Handle CacheServiceException."""
            error = exc.to_response()
            log = self.logger.error if error.status_code >= 500 else self.logger.info
            log(
                "Cache service error",
                code=error.code,
                message=error.message,
                details=error.details,
                path=request.url.path
            )
            self.metrics.record_error(error.code)
            return PlainTextResponse(error.body, status_code=error.status_code)

        @self.app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(request: Request, exc: StarletteHTTPException):
            """Handle routing-level HTTP errors (e.g. 405)."""
            self.metrics.record_error(f"HTTP_{exc.status_code}")
            return PlainTextResponse(
                f"{exc.detail}\n",
                status_code=exc.status_code,
                headers=getattr(exc, "headers", None)
            )

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle general exceptions."""
            self.logger.error("Unhandled exception", error=str(exc), exc_info=True)
            self.metrics.record_error("INTERNAL_ERROR")
            return PlainTextResponse("Internal Server Error\n", status_code=500)

    def run(self):
        """Run the service.

        uvicorn exits the process with a non-zero status when the listener
        cannot be bound.
        """
        import uvicorn

        if self.config.metrics_port:
            self.metrics.start_metrics_server(self.config.metrics_port)
            self.logger.info("Metrics server started", port=self.config.metrics_port)

        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )
