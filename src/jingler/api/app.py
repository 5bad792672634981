"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jingler.api.middleware import jingler_error_handler
from jingler.api.routes import audio, covers, jingles, mix, process, staging, usage
from jingler.models.errors import JinglerError


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Jingler",
        description="Audio ingestion, jingle overlay and tagging pipeline",
        version="0.1.0",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Error handlers
    app.add_exception_handler(JinglerError, jingler_error_handler)

    # Routes
    app.include_router(staging.router)
    app.include_router(process.router)
    app.include_router(mix.router)
    app.include_router(jingles.router)
    app.include_router(covers.router)
    app.include_router(audio.router)
    app.include_router(usage.router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": "0.1.0"}

    return app


app = create_app()
