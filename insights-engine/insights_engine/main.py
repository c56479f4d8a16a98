"""
Main FastAPI application for the Innovation Insights Engine.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .config import settings
from .api.routes import router
from .database import init_db
from .database.db import engine

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Market and research intelligence across papers, patents, trials and news",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    """
    Application startup event handler.
    Creates tables and checks configuration.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    logger.info("Initializing database...")
    init_db()
    logger.info("✅ Database initialized")

    if not settings.validate():
        logger.warning("Some configuration settings are missing or invalid")

    logger.info("Application startup complete")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down application")
    engine.dispose()
    logger.info("✅ Database connections closed")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "insights_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
