"""
Base service class shared by the temp voice services.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

from utils.errors import ServiceError
from utils.logging import get_logger


class BaseService(ABC):
    """
    Abstract base class for long-lived services owned by the ServiceContainer.

    Subclasses implement ``_initialize_impl`` and optionally ``_shutdown_impl``;
    callers use ``initialize``/``shutdown`` which guard against running twice.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.logger = get_logger(f"services.{name}")
        self._initialized = False
        self._lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Initialize the service once. Later calls are no-ops."""
        async with self._lock:
            if self._initialized:
                return

            self.logger.info("Initializing %s service", self.name)
            try:
                await self._initialize_impl()
            except Exception as e:
                self.logger.exception(
                    "Failed to initialize %s service", self.name, exc_info=e
                )
                raise
            self._initialized = True
            self.logger.info("%s service initialized", self.name)

    async def shutdown(self) -> None:
        """Release resources. Errors are logged, never raised."""
        if not self._initialized:
            return

        self.logger.info("Shutting down %s service", self.name)
        try:
            await self._shutdown_impl()
        except Exception as e:
            self.logger.exception(
                "Error during %s service shutdown", self.name, exc_info=e
            )
        finally:
            self._initialized = False

    @abstractmethod
    async def _initialize_impl(self) -> None:
        """Subclass-specific initialization logic."""

    async def _shutdown_impl(self) -> None:
        """Subclass-specific shutdown logic. Override if needed."""

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise ServiceError(f"{self.name} service is not initialized")

    async def health_check(self) -> dict[str, Any]:
        return {
            "service": self.name,
            "initialized": self._initialized,
            "status": "healthy" if self._initialized else "not_initialized",
        }
