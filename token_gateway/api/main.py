"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from token_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from token_gateway.api.v1 import token
from token_gateway.api.v1.schemas import HealthResponse
from token_gateway.application.pipeline import TokenPipeline
from token_gateway.infrastructure.clients.identity import IdentityClient
from token_gateway.infrastructure.clients.transactions import TransactionClient
from token_gateway.infrastructure.messaging.publisher import StreamPublisher, create_redis_client
from token_gateway.infrastructure.observability.logging import setup_logging
from token_gateway.config import settings
from token_gateway.utils.date_utils import isoformat_utc, utc_now

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire pipeline collaborators once per process"""
    if getattr(app.state, "pipeline", None) is not None:
        yield
        return

    redis_client = create_redis_client()
    app.state.pipeline = TokenPipeline(
        identity_client=IdentityClient(),
        transaction_client=TransactionClient(),
        publisher=StreamPublisher(redis_client),
    )
    try:
        yield
    finally:
        await redis_client.aclose()


def create_app(pipeline: TokenPipeline | None = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Token Service",
        description="OAuth code exchange and transaction publishing gateway",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.pipeline = pipeline

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health", response_model=HealthResponse)
    def health_check():
        return HealthResponse(service=settings.service_name, timestamp=isoformat_utc(utc_now()))

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(token.router, tags=["token"])

    return app


app = create_app()
