"""FastAPI application serving the checkpoint API and map page."""

import contextlib
import logging
from collections.abc import AsyncGenerator

import fastapi
import uvicorn

import common.app
from checkpoints.app import database, routes

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: fastapi.FastAPI) -> AsyncGenerator[None, None]:
    """Initialize database on startup."""
    database.create_db_and_tables()
    logger.info('Database ready at %s', database.DATABASE_PATH)
    yield


app = common.app.create_app('DUI Checkpoints', lifespan=lifespan)

app.include_router(routes.router)


if __name__ == '__main__':
    uvicorn.run(app, host='0.0.0.0', port=8000)
