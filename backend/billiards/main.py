"""
Main application module for the billiards backend.

This file sets up the FastAPI application, configures CORS so a
rendering front end on another origin can call it, and exposes a
simple health check endpoint.

Routers for shapes, orbits and preimages are included under the
``/api`` namespace.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes_orbits import router as orbits_router
from .api.routes_preimages import router as preimages_router
from .api.routes_shapes import router as shapes_router


def create_app() -> FastAPI:
    """Factory to create and configure the FastAPI application.

    Returns:
        FastAPI: The configured FastAPI application instance.
    """
    app = FastAPI(title="Billiards")

    # Allow all origins by default.  Restrict this when the API is
    # deployed next to a known front end.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check endpoint for monitoring and deployment probes.
    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(shapes_router, prefix="/api", tags=["shapes"])
    app.include_router(orbits_router, prefix="/api", tags=["orbits"])
    app.include_router(preimages_router, prefix="/api", tags=["preimages"])

    return app


# Create the application instance.  Uvicorn imports this when running
# ``uvicorn billiards.main:app`` from within ``backend/``.
app = create_app()
