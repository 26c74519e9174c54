"""
REST API main application.
Entry point for the FastAPI server: HTTP routes plus the notification
WebSocket, sharing one process and one hub.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from rest_api.core.cors import configure_cors
from rest_api.core.lifespan import lifespan
from rest_api.core.middlewares import register_middlewares
from rest_api.routers.menu import router as menu_router
from rest_api.routers.orders import router as orders_router
from rest_api.routers.payments import router as payments_router
from rest_api.routers.tables import router as tables_router
from shared.config.settings import settings
from shared.utils.exceptions import AppException
from shared.utils.schemas import ErrorResponse
from ws_gateway.router import router as ws_router


app = FastAPI(
    title="Restaurant POS API",
    description="Orders, tables and live kitchen/floor notifications",
    version="0.1.0",
    lifespan=lifespan,
)

register_middlewares(app)
configure_cors(app)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render domain errors as ``{"detail": ..., "code": ...}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=exc.detail, code=exc.code).model_dump(),
        headers=exc.headers,
    )


# =============================================================================
# Health Check
# =============================================================================


@app.get("/api/health")
def health_check(request: Request):
    """Basic health check endpoint."""
    hub = getattr(request.app.state, "hub", None)
    return {
        "status": "healthy",
        "service": "rest-api",
        "environment": settings.environment,
        "websocket_connections": hub.connection_count if hub is not None else 0,
    }


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(orders_router)
app.include_router(tables_router)
app.include_router(payments_router)
app.include_router(menu_router)
app.include_router(ws_router)


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rest_api.main:app",
        host="0.0.0.0",
        port=settings.rest_api_port,
        reload=True,
    )
