"""Core FastAPI application utilities."""

from typing import Any

import fastapi
import fastapi.middleware.cors

import common.log

# ---------------------------------------------------------------------------
# Health router
# ---------------------------------------------------------------------------

_health_router = fastapi.APIRouter()


@_health_router.api_route('/health', methods=['GET', 'HEAD'])
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {'status': 'healthy'}


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(title: str, **kwargs: Any) -> fastapi.FastAPI:
    """Create a FastAPI app with health endpoint, logging and CORS configured.

    Read-only cross-origin access is allowed so the embeddable widget can query
    the API from partner sites. Additional keyword arguments are forwarded to
    FastAPI.__init__ (e.g. lifespan).
    """
    app = fastapi.FastAPI(title=title, **kwargs)
    common.log.configure_logging()
    app.add_middleware(
        fastapi.middleware.cors.CORSMiddleware,
        allow_origins=['*'],
        allow_methods=['GET', 'OPTIONS'],
        allow_headers=['Content-Type'],
    )
    app.include_router(_health_router)
    return app
