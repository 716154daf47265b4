"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from trainai.api import router as api_router
from trainai.core.config import get_settings
from trainai.core.services import ServiceContainer


@asynccontextmanager
async def lifespan(app: FastAPI):
    services = await ServiceContainer.build(get_settings())
    app.state.services = services
    try:
        yield
    finally:
        await services.aclose()


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Training AI Engine",
        description="Training assistant and certificate extraction service",
        version="0.1.0",
        lifespan=lifespan if use_lifespan else None,
    )

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse(content={"status": "ok"}, status_code=200)

    # Include v1 API router
    app.include_router(api_router, prefix="/v1", tags=["v1"])
    return app


app = create_app()
