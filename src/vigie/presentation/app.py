"""
Vigie RPC relay application.

FastAPI app exposing:
- POST /api/rpc-proxy: same-origin JSON-RPC relay
- GET /api/health/rpc: endpoint registry snapshot
- GET /health: liveness
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from vigie import __version__
from vigie.config import VigieConfig, get_settings
from vigie.infrastructure.chain import ChainClient
from vigie.infrastructure.monitoring import EndpointHealthProber
from vigie.infrastructure.persistence import create_endpoint_store
from vigie.infrastructure.registry import EndpointRegistry
from vigie.infrastructure.transport import RpcTransport
from vigie.presentation.api.routes import health_router, rpc_relay_router
from vigie.reporter import SystemReporter
from vigie.reporter.emojis import Emoji


def create_app(
    settings: Optional[VigieConfig] = None,
    registry: Optional[EndpointRegistry] = None,
    transport: Optional[RpcTransport] = None,
    reporter: Optional[SystemReporter] = None,
    enable_prober: bool = True,
) -> FastAPI:
    """
    Build the relay application.

    Components not supplied are built from settings. The relay always
    calls upstream nodes directly, whatever transport mode is configured.

    Args:
        settings: VigieConfig (defaults to get_settings())
        registry: Pre-built endpoint registry
        transport: Pre-built transport bound to `registry`
        reporter: SystemReporter for logging
        enable_prober: Run the endpoint restoration probe while serving

    Returns:
        FastAPI application
    """
    settings = settings or get_settings()
    reporter = reporter or SystemReporter.from_settings(settings, name="vigie-relay")

    if registry is None:
        registry = EndpointRegistry(
            settings.rpc_endpoints,
            user_endpoint=settings.user_endpoint,
            store=create_endpoint_store(settings),
            config=settings.registry,
            reporter=reporter,
            storage_key=settings.persistence.key,
        )

    if transport is None:
        transport = RpcTransport(
            registry,
            config=settings.transport.model_copy(update={"mode": "direct"}),
            reporter=reporter,
        )

    chain_client = ChainClient(transport, reporter=reporter)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        Starts the restoration probe and closes HTTP clients on shutdown.
        """
        prober = None
        if enable_prober:
            prober = EndpointHealthProber(registry, reporter=reporter)
            prober.start()
        app.state.prober = prober

        reporter.info(
            f"{Emoji.SYSTEM.STARTUP} Relay started with "
            f"{len(registry.urls)} endpoints",
            context="Relay",
        )

        yield

        reporter.info(f"{Emoji.SYSTEM.SHUTDOWN} Relay stopping", context="Relay")
        if prober is not None:
            await prober.stop()
        await transport.close()
        registry.close()

    app = FastAPI(
        title="Vigie - RPC relay",
        description="Same-origin JSON-RPC relay with endpoint failover",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.reporter = reporter
    app.state.registry = registry
    app.state.transport = transport
    app.state.chain_client = chain_client

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Malformed relay requests answer 400, like a missing `method`."""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Invalid request",
                "detail": jsonable_encoder(exc.errors()),
            },
        )

    app.include_router(health_router)
    app.include_router(rpc_relay_router)

    return app
