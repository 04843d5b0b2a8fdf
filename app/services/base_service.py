from abc import ABC, abstractmethod
from typing import Any

from app.core.exceptions import AppError
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BaseService(ABC):
    """Base class for services with a validate-then-run flow.

    Subclasses put cheap, side-effect-free checks in ``validate`` and the
    actual work in ``run``. ``execute`` lets ``AppError`` through unchanged
    and wraps anything else so the API layer only ever sees ``AppError``.
    """

    async def execute(self, *args, **kwargs) -> Any:
        """Validate the input, then run the service.

        Raises:
            AppError: If validation or execution fails
        """
        try:
            self.validate(*args, **kwargs)
            return await self.run(*args, **kwargs)

        except AppError:
            raise

        except Exception as e:
            LOGGER.error(
                f"Service execution failed: {str(e)}",
                exc_info=True,
                extra={"service": self.__class__.__name__},
            )
            raise AppError(f"Service execution failed: {str(e)}", original_error=e) from e

    def validate(self, *args, **kwargs) -> None:
        """Check input before any side effect.

        Raises:
            ValidationError: If input is invalid
        """

    @abstractmethod
    async def run(self, *args, **kwargs) -> Any:
        """Run the core service logic."""
