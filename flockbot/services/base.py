"""
Base service class for the clan battle tracker.

Provides async database session management and retry logic for the
service layer.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable, Any
from sqlalchemy.ext.asyncio import AsyncSession

from flockbot.utils.logger import setup_logger

logger = setup_logger(__name__)

class BaseService:
    """Base class for all services with async database session management."""

    def __init__(self, session_factory):
        """
        Initialize base service with session factory.

        Args:
            session_factory: Async session factory from Database.session_factory
        """
        self.session_factory = session_factory

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a transactional scope: commit on success, roll back on error."""
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def execute_with_retry(self, func: Callable, max_retries: int = 3,
                                 retry_on: tuple = (Exception,)) -> Any:
        """
        Execute a coroutine function, retrying with exponential backoff.

        Only exceptions matching ``retry_on`` are retried; anything else and
        the final failed attempt propagate.
        """
        for attempt in range(max_retries):
            try:
                return await func()
            except retry_on as e:
                if attempt == max_retries - 1:
                    raise
                logger.warning(f"Retry attempt {attempt + 1} for {func.__name__}: {e}")
                await asyncio.sleep(0.1 * (2 ** attempt))  # Exponential backoff
