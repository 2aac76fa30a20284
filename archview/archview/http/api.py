from __future__ import annotations

"""FastAPI application factory for archview.

Every module under :mod:`archview.http.routes` exposes an ``APIRouter`` named
``router``; ``create_app`` imports each of them and registers the router.  The
viewer state and the config file location are stored on ``app.state`` so the
route dependencies can reach them.
"""

from importlib import import_module
from pathlib import Path
import pkgutil

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

import structlog

from ..state import ViewerState


logger = structlog.get_logger()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request and whether it succeeds or fails."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        logger.info("request.start", method=request.method, path=request.url.path)
        try:
            response = await call_next(request)
            logger.info(
                "request.success",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
            )
            return response
        except Exception as exc:  # pragma: no cover - logged then re-raised
            logger.exception(
                "request.failure",
                method=request.method,
                path=request.url.path,
                error=str(exc),
            )
            raise


def create_app(
    viewer: ViewerState | None = None, config_path: Path | None = None
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(title="archview")
    app.state.viewer = viewer or ViewerState()
    app.state.config_path = config_path
    app.add_middleware(RequestLoggingMiddleware)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    from . import routes as routes_pkg

    for _, module_name, _ in pkgutil.iter_modules(routes_pkg.__path__):
        module = import_module(f"{routes_pkg.__name__}.{module_name}")
        router = getattr(module, "router", None)
        if router is not None:
            app.include_router(router)

    return app
