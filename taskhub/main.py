import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from . import models  # noqa: F401  registers the tables on Base.metadata
from .config import Settings
from .database import Database
from .errors import register_exception_handlers
from .routers import projects, tasks, users

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or Settings()
    database = database or Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            database.connect()
        except Exception:
            logger.exception("Could not connect to the database")
            raise
        yield
        database.close()

    app = FastAPI(title="Taskhub API", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database

    register_exception_handlers(app, debug=settings.debug)
    app.include_router(projects.router)
    app.include_router(users.router)
    app.include_router(tasks.router)
    return app


def run():
    settings = Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
