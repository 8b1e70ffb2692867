"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from explorer import SERVER_NAME, VERSION
from explorer.config import ExplorerConfig
from explorer.ExplorerService import ExplorerService
from explorer.log_setup import configure_logging

from api.routes import router

logger = structlog.get_logger(__name__)


def create_app(config: ExplorerConfig | None = None) -> FastAPI:
    """Build the application.

    Args:
        config: Configuration to serve with. Read from the environment at
            start-up when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """Set up and tear down application-wide resources."""
        resolved = config or ExplorerConfig.from_env()
        for notice in resolved.warnings():
            logger.warning("configuration_notice", notice=notice)

        # Connections are opened per request, so there is nothing to close.
        app.state.service = ExplorerService(resolved)
        logger.info("api_started", database_path=resolved.database_path)
        yield
        logger.info("api_stopped")

    app = FastAPI(
        title="SQLCipher Explorer API",
        version=VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app


app = create_app()


def serve() -> None:
    """Start the uvicorn server using environment configuration."""
    config = ExplorerConfig.from_env()
    configure_logging(config.log_level, config.log_format)
    logger.info("api_serving", name=SERVER_NAME, host=config.api_host, port=config.api_port)
    uvicorn.run(create_app(config), host=config.api_host, port=config.api_port, reload=False)


if __name__ == "__main__":
    serve()
