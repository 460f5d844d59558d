"""
Format Modifications Backend - FastAPI Application Entry Point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from format_modifications.routers import buffers, config, formatting
from format_modifications.services.config_manager import ConfigManager

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - startup and shutdown logic"""
    logger.info("Starting Format Modifications Backend...")
    config_manager = ConfigManager.get_instance()
    logger.info(
        "Loaded config from %s with %d formatter clients",
        config_manager.config_file,
        len(config_manager.get_formatters()),
    )

    yield
    logger.info("Shutting down Format Modifications Backend...")


app = FastAPI(
    title="Format Modifications Backend",
    description="Formats only the lines of a buffer that differ from version control",
    version="1.0.0",
    lifespan=lifespan,
)

# Editor plugins talk to the backend from the local machine
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(buffers.router, prefix="/api/buffers", tags=["buffers"])
app.include_router(formatting.router, prefix="/api/format", tags=["format"])
app.include_router(config.router, prefix="/api/config", tags=["config"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "format-modifications-backend"}


def run() -> None:
    import uvicorn

    config = ConfigManager.get_instance().get_config()
    configure_logging(config.get("log_level", "INFO"))
    server = config.get("server", {})
    uvicorn.run(app, host=server.get("host", "127.0.0.1"), port=server.get("port", 8000))


if __name__ == "__main__":
    run()
