from typing import Any, Awaitable, Callable, Type

from app.core.exceptions import AppError, InternalError
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BaseService:
    """Base class for application services.

    Provides a standardized execution flow: application errors pass through
    untouched, anything else is logged and reported as an opaque internal
    failure.
    """

    failure_error: Type[InternalError] = InternalError

    def __init__(self):
        self.logger = LOGGER

    async def _execute(
        self,
        operation: str,
        func: Callable[..., Awaitable[Any]],
        *args,
        **kwargs,
    ) -> Any:
        """Execute one service operation.

        Args:
            operation: Name used in logs and error messages
            func: Coroutine function implementing the operation
            *args: Positional arguments for ``func``
            **kwargs: Keyword arguments for ``func``

        Returns:
            Result of the operation

        Raises:
            AppError: If execution fails
        """
        try:
            return await func(*args, **kwargs)

        except InternalError as e:
            self.logger.error(
                f"{operation} failed: {str(e)}",
                exc_info=True,
                extra={"service": self.__class__.__name__, "operation": operation},
            )
            if isinstance(e, self.failure_error):
                raise
            raise self.failure_error(f"{operation} failed", original_error=e)

        except AppError:
            raise

        except Exception as e:
            self.logger.error(
                f"Service execution failed: {str(e)}",
                exc_info=True,
                extra={"service": self.__class__.__name__, "operation": operation},
            )
            raise self.failure_error(f"{operation} failed", original_error=e)
