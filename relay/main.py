"""
GovESB Relay
FastAPI Entry Point
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import RelayConfig
from .routes import esb_test, system
from .services.esb import initialize_helper

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(config: Optional[RelayConfig] = None,
               transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """
    Build the relay application.

    Args:
        config: Relay settings, read from the environment when omitted
        transport: Outbound httpx transport (tests pass a MockTransport)
    """
    config = config or RelayConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events"""
        logger.info("Starting GovESB relay v%s", __version__)
        http_client = httpx.AsyncClient(timeout=config.http_timeout, transport=transport)
        app.state.http_client = http_client
        app.state.esb = initialize_helper(config, http_client=http_client)
        logger.info("GovESB helper ready (%s mode)", "live" if app.state.esb.live else "offline")

        yield

        logger.info("Shutting down GovESB relay...")
        await app.state.esb.helper.aclose()
        await http_client.aclose()

    app = FastAPI(
        title="GovESB Relay",
        description="HTTP relay around the GovESB connector",
        version=__version__,
        lifespan=lifespan
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(esb_test.router, prefix="/esb-test", tags=["ESB Test"])
    app.include_router(system.router, tags=["System"])

    return app


def run() -> None:
    """Console entry point: serve the relay with uvicorn."""
    import uvicorn

    config = RelayConfig.from_env()
    configure_logging(config.log_level)
    logger.info("GovESB relay listening on http://%s:%s", config.host, config.port)
    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    run()
