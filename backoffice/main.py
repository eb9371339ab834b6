"""
Main FastAPI application entry point.
"""

import logging

from fastapi import FastAPI

from backoffice.config import get_settings
from backoffice.api import router as api_router

settings = get_settings()


def configure_logging(level: str = settings.log_level) -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


configure_logging()

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Real estate and corporate back office: mortgages, cash flows and tax depreciation",
    version="0.1.0",
    debug=settings.debug,
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "version": "0.1.0"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("backoffice.main:app", host=settings.host, port=settings.port)
