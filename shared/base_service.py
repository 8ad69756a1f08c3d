"""
Base service class for Data Governance Catalog services.
"""

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, Optional
import time

import uvicorn
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from shared.config import ServiceConfig, get_config
from shared.logging import configure_logging, get_logger, set_request_id, clear_context
from shared.metrics import get_metrics_collector
from shared.errors import GovernanceError, DependencyError, ErrorResponse


CONNECTED = "connected"
DISCONNECTED = "disconnected"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, service_name: str, config: Optional[ServiceConfig] = None):
        self.service_name = service_name
        self.config = config or get_config(service_name)
        self.port = self.config.port
        self.logger = get_logger(f"{service_name}.service")
        self.metrics = get_metrics_collector(service_name)

        configure_logging(service_name, self.config.log_level)

        self.app = self._create_app()
        self._setup_middleware()
        self._setup_routes()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""

        @asynccontextmanager
        async def lifespan(_: FastAPI):
            await self.start()
            try:
                yield
            finally:
                await self.stop()

        return FastAPI(
            title=f"{self.service_name.title()} Service",
            description=f"Data Governance Tool - {self.service_name.title()} Service",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
            lifespan=lifespan,
        )

    def _setup_middleware(self):
        """Set up middleware."""

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"] if self.config.env == "local" else [],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        @self.app.middleware("http")
        async def add_request_context(request: Request, call_next):
            request_id = set_request_id(request.headers.get("X-Request-ID"))
            start_time = time.time()

            try:
                try:
                    response = await call_next(request)
                except Exception as exc:
                    response = self._internal_error_response(exc, request_id)

                duration = time.time() - start_time

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
                    duration_ms=round(duration * 1000, 2)
                )

                response.headers["X-Request-ID"] = request_id
                for header, value in SECURITY_HEADERS.items():
                    response.headers.setdefault(header, value)
                return response
            finally:
                clear_context()

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            services = await self._check_dependencies()
            healthy = all(state == CONNECTED for state in services.values())
            status = "healthy" if healthy else "unhealthy"

            self.metrics.record_health_check(status)
            if not healthy:
                self.logger.warning("Health check failed", services=services)

            return JSONResponse(
                status_code=200 if healthy else 503,
                content={
                    "status": status,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "services": services,
                }
            )

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            return Response(
                content=generate_latest(self.metrics.registry),
                media_type=CONTENT_TYPE_LATEST
            )

        @self.app.exception_handler(GovernanceError)
        async def governance_exception_handler(request: Request, exc: GovernanceError):
            """Handle GovernanceError and its subclasses."""
            if isinstance(exc, DependencyError):
                self.logger.error(
                    "Dependency failure",
                    dependency=exc.dependency,
                    message=exc.message,
                    path=request.url.path,
                    cause=repr(exc.__cause__) if exc.__cause__ else None
                )
                self.metrics.record_error(f"{exc.dependency}_error")
            else:
                self.logger.info(
                    "Request rejected",
                    code=exc.code,
                    message=exc.message,
                    path=request.url.path
                )
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_response().model_dump()
            )

        @self.app.exception_handler(RequestValidationError)
        async def request_validation_handler(request: Request, exc: RequestValidationError):
            """Report malformed requests as client errors."""
            response = ErrorResponse(
                code="VALIDATION_ERROR",
                message="Invalid request",
                details={"errors": [
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
                    for err in exc.errors()
                ]}
            )
            return JSONResponse(status_code=400, content=response.model_dump())

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle exceptions raised outside the request middleware."""
            return self._internal_error_response(exc, None)

    def _internal_error_response(self, exc: Exception, request_id: Optional[str]) -> JSONResponse:
        """Log an unhandled exception and build the 500 response."""
        self.logger.error("Unhandled exception", error=str(exc), exc_info=exc)
        self.metrics.record_error("unhandled")
        response = ErrorResponse(
            request_id=request_id,
            code="INTERNAL_ERROR",
            message="Internal server error"
        )
        return JSONResponse(status_code=500, content=response.model_dump())

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check service dependencies. Override in subclasses."""
        return {}

    async def start(self):
        """Start service components. Override in subclasses."""

    async def stop(self):
        """Stop service components. Override in subclasses."""

    def run(self) -> int:
        """Run the service until shutdown. Returns 1 if startup failed."""
        server = uvicorn.Server(uvicorn.Config(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        ))
        server.run()
        if not server.started:
            self.logger.error("Service failed to start", service=self.service_name)
            return 1
        return 0
