"""
Metro IBL Adapter FastAPI Application

Main entry point for the review adapter.
Configures FastAPI with the review action routes and the bots database.
"""

import argparse
import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from dotenv import find_dotenv, load_dotenv
from fastapi import FastAPI

from metro_adapter.config import Settings, get_settings, load_settings
from metro_adapter.database import init_db, init_engine
from metro_adapter.api.routes import actions, health

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Handles:
    - Loading settings from the environment (and .env)
    - Database initialisation on startup
    - Startup logging of the list configuration
    """
    # Startup
    settings = load_settings()
    init_engine(settings.database.DATABASE_URL)
    init_db()
    if settings.listing.STARTUP_LOGS:
        logger.info(f"Starting {settings.APP_NAME} v{settings.VERSION}")
        logger.info(
            f"List {settings.listing.LIST_ID or '<unset>'} on {settings.listing.DOMAIN_NAME}"
        )
    if not settings.listing.SECRET_KEY:
        logger.warning("SECRET_KEY is not set; all review actions will be rejected")

    yield

    # Shutdown
    logger.info("Shutting down adapter...")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        description="Applies review list actions to the bots table",
        lifespan=lifespan,
        debug=settings.DEBUG,
    )

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(actions.router)

    @app.get("/")
    async def root() -> dict:
        """
        Root endpoint.

        Returns:
            dict: Adapter information and public list configuration.
        """
        current = get_settings()
        return {
            "message": f"Welcome to {current.APP_NAME}",
            "version": current.VERSION,
            "list": current.listing.public_dict(),
            "health": "/health",
        }

    return app


app = create_app()


def main(argv=None) -> None:
    """Run the adapter with uvicorn."""
    load_dotenv(find_dotenv(usecwd=True))
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(description="Metro review adapter")
    parser.add_argument("--db", default=settings.database.DATABASE_URL, help="Database connection URL")
    parser.add_argument("--host", default=settings.server.HOST)
    parser.add_argument("--port", type=int, default=settings.server.PORT)
    args = parser.parse_args(argv)

    # Picked up by load_settings() in lifespan
    os.environ["DATABASE_URL"] = args.db

    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
