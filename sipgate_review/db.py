"""Share store database: engine setup and ShareService scopes"""
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.exc import SQLAlchemyError

from sipgate_review.config import settings
from sipgate_review.models.db import Base, SharedReview
from sipgate_review.services.storage import ShareService

logger = logging.getLogger(__name__)

class ShareDatabase:
    """Owns the shared_reviews table and hands out ShareService scopes"""

    def __init__(self):
        self._engine: Optional[Engine] = None
        self._SessionLocal = None

    @property
    def initialized(self) -> bool:
        return self._SessionLocal is not None

    def init(self, url: Optional[str] = None) -> None:
        """
        Connect to the share store and make sure shared_reviews exists.

        Args:
            url: SQLAlchemy URL, defaults to settings.DATABASE_URL
        """
        connection_string = url or settings.DATABASE_URL
        try:
            self._engine = create_engine(connection_string)
            table = SharedReview.__tablename__
            if not inspect(self._engine).has_table(table):
                logger.info(f"Creating share table {table}")
            Base.metadata.create_all(self._engine, tables=[SharedReview.__table__])
            self._SessionLocal = sessionmaker(bind=self._engine)
            logger.info(f"Share store ready ({self._engine.url.get_backend_name()})")
        except SQLAlchemyError as e:
            logger.error(f"Share store initialization failed: {e}")
            self.dispose()
            raise

    @contextmanager
    def share_store(self) -> Generator[ShareService, None, None]:
        """ShareService bound to a fresh session; committed on success, rolled back on error"""
        if not self.initialized:
            raise RuntimeError("Share store not initialized. Call init() first.")

        session = self._SessionLocal()
        try:
            yield ShareService(session)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        if self._engine:
            self._engine.dispose()
        self._engine = None
        self._SessionLocal = None

# Global share store instance
db = ShareDatabase()
