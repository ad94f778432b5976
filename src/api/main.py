"""FastAPI application main module.

This module defines the main FastAPI application instance and core API endpoints
for the HavenRec recommendation service. It provides health, status and metrics
endpoints and serves as the entry point for the API server.
"""

from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.exceptions import HavenRecException
from src.api.logging_config import RequestLoggingMiddleware, setup_logging
from src.api.metrics import metrics_service
from src.api.routes import recommend
from src.recommender.config import LOG_LEVEL

setup_logging(LOG_LEVEL)

# Create FastAPI application instance
app = FastAPI(
    title="HavenRec API",
    description="Product recommendations for the Market Haven storefront",
    version="0.1.0",
)

app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(recommend.router)


@app.exception_handler(HavenRecException)
async def havenrec_exception_handler(request: Request, exc: HavenRecException) -> JSONResponse:
    """Render HavenRec errors as ``{"error", "message", "details"}``."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/ping")
def ping() -> Dict[str, str]:
    """Health check endpoint.

    Returns a simple status response to verify the API is running.

    Returns:
        Dictionary with status key set to "ok".

    Example:
        >>> response = client.get("/ping")
        >>> assert response.json() == {"status": "ok"}
    """
    return {"status": "ok"}


@app.get("/status")
def status() -> Dict[str, Any]:
    """Report whether catalog data is loaded and how much of it there is."""
    return recommend.get_data_status()


@app.get("/metrics")
def metrics() -> Dict[str, Any]:
    """Per-operation call counts and latency statistics."""
    return metrics_service.get_metrics()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
