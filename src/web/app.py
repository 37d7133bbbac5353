"""
FastAPI application factory for the site configuration console.

Routes:
- /api/site/*     -> workbook import, site view, summary, findings
- /api/devices/*  -> device edits, placement, config paths
- /api/preview/*  -> generated XML documents (not written)
- /api/export/*   -> write documents to the install root
- /api/levels/{id}/bootstrap -> load devices from an existing install
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import api


def create_app() -> FastAPI:
    """Create the FastAPI app and wire routes."""
    app = FastAPI(
        title="Site Config Console",
        version="0.1.0",
        description="Parking site configuration: workbook import and field-service config export",
    )

    # CORS for development (editor UI dev server)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api.router, prefix="/api")

    return app


# Exported application instance for uvicorn
app = create_app()
