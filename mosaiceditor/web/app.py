"""FastAPI web application for the image redaction editor."""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mosaiceditor import __version__
from mosaiceditor.web.routers.redaction import router as redaction_router

logger = logging.getLogger(__name__)

SERVICE_NAME = "image-redaction-editor"

app = FastAPI(
    title="Image Redaction Editor",
    description="Mosaic or blur selected regions of an image and download the result",
    version=__version__,
)

# CORS restricted to local frontends
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(redaction_router, prefix="/api", tags=["redaction"])


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": SERVICE_NAME, "version": __version__}


def create_app() -> FastAPI:
    """Create and return the FastAPI app."""
    return app


def run_dev_server(host: str = "127.0.0.1", port: int = 8000) -> None:
    """Run development server."""
    logger.info("Starting redaction server at http://%s:%d", host, port)
    uvicorn.run(
        "mosaiceditor.web.app:app",
        host=host,
        port=port,
        reload=True,
        log_level="info",
    )


if __name__ == "__main__":
    run_dev_server()
