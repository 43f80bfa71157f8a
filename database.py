"""Database engine and session management."""
import logging
from contextlib import contextmanager
from typing import Iterator, Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Owns the SQLAlchemy engine and hands out sessions."""

    def __init__(self, url: Union[str, URL]):
        """
        Initialize database.

        Args:
            url: SQLAlchemy database URL
        """
        url_text = str(url)
        if url_text.startswith("sqlite"):
            # In-memory SQLite must share one connection across threads
            self.engine = create_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(url, pool_pre_ping=True)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self):
        """Create tables for every registered model."""
        import models  # noqa: F401  registers the tables on Base.metadata

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created/verified")

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def ping(self):
        """Round-trip a trivial query; raises if the database is unreachable."""
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))

    def dispose(self):
        self.engine.dispose()
