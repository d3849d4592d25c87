"""Database singleton: read-only async PostgreSQL pool over the tracking tables."""

import logging
from typing import Optional
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the async engine. connect() once at startup, disconnect() on shutdown."""

    def __init__(self):
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    # Used by: main.py lifespan (startup)
    async def connect(self, database_url: str, schema: str = "public") -> None:
        if self._engine is not None:
            logger.warning("Database already connected")
            return
        if not database_url:
            raise RuntimeError("DB_CONNECTION_STRING is not set")

        logger.info(f"Connecting to database (schema={schema})...")

        # Tracking tables are unqualified in queries; resolve them via search_path
        self._engine = create_async_engine(
            database_url,
            echo=False,
            pool_pre_ping=True,
            connect_args={"server_settings": {"search_path": schema}},
        )
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        logger.info("Database connected")

    # Used by: main.py lifespan (shutdown)
    async def disconnect(self) -> None:
        if self._engine is None:
            return

        logger.info("Disconnecting from database...")
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None

    # Used by: main.py (GET /health)
    async def ping(self) -> bool:
        if self._session_factory is None:
            return False
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning(f"Database ping failed: {e}")
            return False

    # Used by: services/babies_data.py
    def session(self) -> AsyncSession:
        """Use as: async with db.session() as session: ..."""
        if self._session_factory is None:
            raise RuntimeError("Database not connected")
        return self._session_factory()


_db: Optional[DatabaseManager] = None


def get_database() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager()
    return _db
