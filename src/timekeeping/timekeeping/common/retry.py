from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from ..core.enums import ErrorCode
from ..core.exceptions import ConcurrentUpdateError, DomainError, InternalError, OptimisticLockError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_with_retry(
    operation: Callable[[], T],
    *,
    max_attempts: int,
    backoff_ms: int,
    label: str,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run a read-modify-write cycle, retrying on conflicts with linear backoff.

    DomainError is never retried. OptimisticLockError becomes
    ConcurrentUpdateError and any other exception becomes InternalError once
    the attempts are exhausted.
    """

    for attempt in range(1, max_attempts + 1):
        try:
            logger.debug("%s: attempt %d/%d", label, attempt, max_attempts)
            return operation()
        except DomainError:
            raise
        except OptimisticLockError as e:
            logger.warning("%s: optimistic lock conflict (attempt %d/%d): %s", label, attempt, max_attempts, e)
            if attempt == max_attempts:
                raise ConcurrentUpdateError(
                    "The record was updated by another operation. Please try again shortly.",
                    ErrorCode.CONCURRENT_UPDATE_ERROR,
                ) from e
        except Exception as e:
            logger.warning("%s: unexpected failure (attempt %d/%d)", label, attempt, max_attempts, exc_info=True)
            if attempt == max_attempts:
                raise InternalError(f"Internal error: {e}") from e
        sleep(backoff_ms * attempt / 1000.0)

    raise InternalError("Retry loop exited without a result")
