"""Base service class for all services."""

import logging
from abc import ABC

from sqlmodel.ext.asyncio.session import AsyncSession

from db.redis_database import REDIS_ASYNC_CLIENT, RedisWrapper


class BaseService(ABC):
    """Base class for all services.

    Provides common functionality like logging, database and Redis access.
    """

    def __init__(
        self,
        session: AsyncSession | None = None,
        redis: RedisWrapper | None = None,
        logger: logging.Logger | None = None,
    ):
        """Initialize the service.

        Args:
            session: Optional database session for DB operations.
            redis: Optional Redis client. Defaults to the shared async client.
            logger: Optional logger instance. If not provided, creates one.
        """
        self._session = session
        self._redis = redis if redis is not None else REDIS_ASYNC_CLIENT
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    @property
    def session(self) -> AsyncSession:
        """Get the database session."""
        if self._session is None:
            raise RuntimeError(f"{self.__class__.__name__} was created without a database session")
        return self._session

    @property
    def logger(self) -> logging.Logger:
        """Get the logger."""
        return self._logger

    @property
    def redis(self) -> RedisWrapper:
        """Get the Redis client."""
        return self._redis
