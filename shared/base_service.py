"""
Base service class for subgraph services.
"""

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import asyncio
import os
import sys
import time

from shared.config import SubgraphConfig, get_config
from shared.logging import clear_context, configure_logging, get_logger, request_id_var, set_request_id
from shared.metrics import get_metrics_collector
from shared.errors import SubgraphException


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, config: Optional[SubgraphConfig] = None):
        self.config = config or get_config()
        self.service_name = self.config.service_name
        self.port = self.config.port

        configure_logging(self.service_name, self.config.log_level)
        self.logger = get_logger(self.service_name)
        self.metrics = get_metrics_collector(self.service_name)

        self.app = self._create_app()
        self._setup_middleware()
        self._setup_routes()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""
        return FastAPI(
            title=f"{self.service_name} service",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
            lifespan=self._lifespan,
        )

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        asyncio.get_running_loop().set_exception_handler(self._handle_loop_exception)
        await self._on_startup()
        self.logger.info(
            "Service started",
            host=self.config.host,
            port=self.config.port,
            env=self.config.env,
        )
        try:
            yield
        finally:
            await self._on_shutdown()
            self.logger.info("Service stopped")

    async def _on_startup(self) -> None:
        """Startup hook. Override in subclasses."""

    async def _on_shutdown(self) -> None:
        """Shutdown hook. Override in subclasses."""

    def _handle_loop_exception(self, loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        """Terminate on an unhandled asynchronous error outside any request.

        Exceptions raised while handling a request are caught by the FastAPI
        exception handlers and never get here. A task spawned during a request
        inherits its request id; when such a task fails the error is logged
        and left to the default handler. Transport ``OSError``s are not fatal.
        """
        exception = context.get("exception")
        if exception is None or isinstance(exception, OSError):
            loop.default_exception_handler(context)
            return

        request_id = _request_id_of(context)
        if request_id is not None:
            self.logger.error(
                "Unhandled asynchronous error in request task",
                message=context.get("message"),
                error=repr(exception),
                request_id=request_id,
            )
            self.metrics.record_error("unhandled_async")
            loop.default_exception_handler(context)
            return

        self.logger.critical(
            "Unhandled asynchronous error, terminating",
            message=context.get("message"),
            error=repr(exception),
        )
        self.metrics.record_error("unhandled_async")
        sys.stdout.flush()
        os._exit(1)

    def _setup_middleware(self):
        """Set up middleware."""

        @self.app.middleware("http")
        async def add_request_context(request: Request, call_next):
            start_time = time.time()
            request_id = set_request_id(request.headers.get("x-request-id"))

            try:
                response = await call_next(request)
            finally:
                clear_context()

            duration = time.time() - start_time
            response.headers["X-Request-ID"] = request_id

            self.metrics.record_http_request(
                method=request.method,
                endpoint=request.url.path,
                status_code=response.status_code,
                duration=duration
            )

            self.logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
                request_id=request_id,
            )

            return response

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get("/health")
        async def health_check():
            """Liveness probe; does not touch downstream services."""
            self.metrics.record_health_check("ok")
            return {
                "status": "healthy",
                "service": self.service_name,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            from prometheus_client import CONTENT_TYPE_LATEST
            return Response(
                content=self.metrics.export(),
                media_type=CONTENT_TYPE_LATEST
            )

        @self.app.exception_handler(SubgraphException)
        async def subgraph_exception_handler(request: Request, exc: SubgraphException):
            """Handle SubgraphException."""
            self.logger.error(
                "Subgraph error",
                code=exc.code,
                message=exc.message,
                details=exc.details
            )
            self.metrics.record_error(exc.code)
            return JSONResponse(
                status_code=400,
                content=exc.to_response().model_dump()
            )

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle general exceptions."""
            self.logger.error("Unhandled exception", error=str(exc), exc_info=True)
            self.metrics.record_error("internal")
            return JSONResponse(
                status_code=500,
                content={
                    "code": "INTERNAL_ERROR",
                    "message": "Internal server error",
                    "details": {}
                }
            )

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )


def _request_id_of(context: Dict[str, Any]) -> Optional[str]:
    """Return the request id bound when the failing task was created, if any."""
    task = context.get("task") or context.get("future")
    get_context = getattr(task, "get_context", None)
    if not callable(get_context):
        return None
    return get_context().get(request_id_var)
