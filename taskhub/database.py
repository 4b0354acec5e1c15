import logging

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Owns the engine and session factory for one store.

    Constructed explicitly and handed to ``create_app``; ``connect`` is called
    at startup and ``close`` at shutdown.
    """

    def __init__(self, url: str, **engine_kwargs):
        if url.startswith("sqlite"):
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
            if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
                # one shared connection, otherwise every session sees an empty database
                engine_kwargs.setdefault("poolclass", StaticPool)
        self.url = url
        self.engine = create_engine(url, **engine_kwargs)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False)

    def connect(self):
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        Base.metadata.create_all(bind=self.engine)
        logger.info("Connected to database %s", self.engine.url.render_as_string(hide_password=True))

    def close(self):
        self.engine.dispose()
        logger.info("Database connection closed")

    def session(self) -> Session:
        return self.SessionLocal()


def get_db(request: Request):
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
