"""
FastAPI scaffold for the bank token service.

``BaseService`` wires the pieces every process exposes: request-id
propagation, request timing, ``/health``, ``/metrics`` and JSON error
bodies. Subclasses add their routes and override ``_check_dependencies``.
"""

import time
from typing import Dict

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST

from shared.config import BaseConfig
from shared.errors import ServiceException
from shared.logging import configure_logging, get_logger, set_request_id, clear_context
from shared.metrics import get_metrics_collector

REQUEST_ID_HEADER = "X-Request-ID"

# Probe endpoints, not logged per request
QUIET_PATHS = frozenset({"/health", "/metrics"})


class BaseService:
    """Common service wiring: app, middleware, health, metrics and errors."""

    version = "1.0.0"

    def __init__(self, service_name: str, config: BaseConfig):
        self.service_name = service_name
        self.config = config
        self.port = config.port
        self.logger = get_logger(f"{service_name}.service")
        self.metrics = get_metrics_collector(service_name, version=self.version)
        self._start_time = time.time()

        configure_logging(service_name, self.config.log_level)

        self.app = self._create_app()
        self._setup_middleware()
        self._setup_routes()

    def _create_app(self) -> FastAPI:
        return FastAPI(
            title=f"Bank {self.service_name.title()} Service",
            version=self.version,
            docs_url="/docs" if self.config.is_local else None,
            redoc_url="/redoc" if self.config.is_local else None,
        )

    def _setup_middleware(self):
        """Set up CORS and request timing."""

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"] if self.config.is_local else self.config.cors_origins,
            allow_credentials=False,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

        @self.app.middleware("http")
        async def request_context(request: Request, call_next):
            start_time = time.time()
            request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))

            try:
                response = await call_next(request)
                duration = time.time() - start_time

                self.metrics.record_http_request(
                    method=request.method,
                    endpoint=request.url.path,
                    status_code=response.status_code,
                    duration=duration
                )
                if request.url.path not in QUIET_PATHS:
                    self.logger.info(
                        "HTTP request",
                        method=request.method,
                        path=request.url.path,
                        status_code=response.status_code,
                        duration_ms=round(duration * 1000, 2)
                    )
            finally:
                clear_context()

            response.headers[REQUEST_ID_HEADER] = request_id
            return response

    def _setup_routes(self):
        """Set up health, metrics and error handlers."""

        @self.app.get("/health")
        async def health_check():
            try:
                dependencies = await self._check_dependencies()
            except Exception as e:
                self.logger.error("Health check failed", error=str(e))
                self.metrics.record_health_check("error")
                return JSONResponse(
                    status_code=503,
                    content={
                        "service": self.service_name,
                        "status": "error",
                        "error": str(e)
                    }
                )

            status = "ok" if all(v == "ok" for v in dependencies.values()) else "degraded"
            self.metrics.record_health_check(status)
            return {
                "service": self.service_name,
                "status": status,
                "uptime_seconds": round(time.time() - self._start_time, 3),
                "dependencies": dependencies,
                "version": self.version,
                "commit": self.config.git_commit
            }

        @self.app.get("/metrics")
        async def metrics_endpoint():
            return Response(
                content=self.metrics.render(),
                media_type=CONTENT_TYPE_LATEST
            )

        @self.app.exception_handler(ServiceException)
        async def service_exception_handler(request: Request, exc: ServiceException):
            self.logger.error(
                "Service error",
                code=exc.code,
                message=exc.message,
                details=exc.details
            )
            self.metrics.record_error(exc.code)
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_response().model_dump()
            )

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            self.logger.error("Unhandled exception", error=str(exc), exc_info=True)
            self.metrics.record_error("INTERNAL_ERROR")
            return JSONResponse(
                status_code=500,
                content={
                    "code": "INTERNAL_ERROR",
                    "message": "Internal server error",
                    "details": {}
                }
            )

    async def _check_dependencies(self) -> Dict[str, str]:
        """Map of dependency name to "ok" or an error marker. Override in subclasses."""
        return {}

    def run(self):
        """Serve the app with uvicorn until interrupted."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )
