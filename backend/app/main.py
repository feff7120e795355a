"""FastAPI application."""

from fastapi import FastAPI

from backend.app.api.envelope import install_exception_handlers
from backend.app.api.routes.access import router as access_router
from backend.app.api.routes.health import router as health_router
from backend.app.api.routes.metrics import router as metrics_router
from backend.app.config import get_settings
from backend.app.utils.logging import configure_logging

configure_logging(get_settings())

app = FastAPI(title="OBD Premium Access API", version="0.1.0")

install_exception_handlers(app)

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(access_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "OBD Premium Access API", "version": "0.1.0"}
