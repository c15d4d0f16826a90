import asyncio
import functools
import logging

from sqlalchemy.exc import OperationalError

from ..core.errors import StoreUnavailable

logger = logging.getLogger(__name__)


def resilient(idempotent: bool = True):
    """Bound a store coroutine by a timeout and retry transient failures.

    The decorated method's instance supplies ``timeout``, ``max_retries``
    and ``backoff``. ``OperationalError`` is always retried: the failed
    transaction has been rolled back. A timeout is retried only for
    idempotent calls, since the abandoned attempt may still commit.
    Domain errors and cancellation propagate untouched.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            last_error = None
            for attempt in range(1, self.max_retries + 1):
                try:
                    return await asyncio.wait_for(
                        func(self, *args, **kwargs), timeout=self.timeout
                    )
                except OperationalError as exc:
                    last_error = exc
                except asyncio.TimeoutError as exc:
                    if not idempotent:
                        raise StoreUnavailable(
                            f"{func.__qualname__} timed out after {self.timeout}s"
                        ) from exc
                    last_error = exc

                logger.warning(
                    f"{func.__qualname__} failed (attempt {attempt}/{self.max_retries}): "
                    f"{last_error!r}"
                )
                if attempt < self.max_retries:
                    await asyncio.sleep(self.backoff * attempt)

            raise StoreUnavailable(
                f"{func.__qualname__} failed after {self.max_retries} attempts"
            ) from last_error
        return wrapper
    return decorator
