"""
Database access for the results engine.

One engine per process, created lazily from Settings. Callers work inside
session_scope(); repositories never open sessions themselves.
"""

from contextlib import contextmanager
from typing import Generator, Optional
import logging

from sqlalchemy import Engine, create_engine, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from config import Settings, get_settings
from shared.models.entities import Base
from shared.utils.exceptions import DatabaseException

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the engine and hands out transactional sessions."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            url = self.settings.database_url
            logger.info(f"Opening results database at {self._mask_password(url)}")
            self._engine = create_engine(url, **self._engine_options())
        return self._engine

    def _engine_options(self) -> dict:
        options = {"echo": self.settings.log_level == "DEBUG"}
        # SQLite keeps its own pool; size settings only apply to server databases
        if not self.settings.is_sqlite:
            options.update(
                poolclass=QueuePool,
                pool_size=self.settings.db_pool_size,
                max_overflow=self.settings.db_max_overflow,
                pool_timeout=self.settings.db_pool_timeout,
                pool_pre_ping=True,
            )
        return options

    def create_tables(self) -> list[str]:
        """
        Create the roster, feedback and respondent tables.

        Returns:
            Names of the tables that did not exist before
        """
        existing = set(inspect(self.engine).get_table_names())
        Base.metadata.create_all(self.engine)
        created = sorted(set(Base.metadata.tables) - existing)
        logger.info(f"Created {len(created)} tables: {', '.join(created) or 'none'}")
        return created

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Yield a session that commits on success and rolls back on error.

        Raises:
            DatabaseException: If the commit or a query fails in SQLAlchemy
        """
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self.engine, autoflush=False)
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Results transaction rolled back: {e}")
            raise DatabaseException("transaction", e)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def health_check(self) -> bool:
        """True when the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Results database unreachable: {e}")
            return False

    def close(self):
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None

    @staticmethod
    def _mask_password(url: str) -> str:
        if "@" not in url:
            return url
        credentials, host = url.rsplit("@", 1)
        scheme, _, user_pass = credentials.partition("://")
        if ":" not in user_pass:
            return url
        user = user_pass.split(":", 1)[0]
        return f"{scheme}://{user}:****@{host}"


_db_manager: DatabaseManager | None = None


def get_db_manager() -> DatabaseManager:
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


def reset_db_manager():
    """Dispose of the process-wide manager so the next call rereads settings."""
    global _db_manager
    if _db_manager:
        _db_manager.close()
    _db_manager = None
