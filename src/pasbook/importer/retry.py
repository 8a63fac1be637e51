"""Caller-side retry policy for imports"""

import logging
import time
from pathlib import Path
from typing import Callable

from pasbook.config import settings
from pasbook.errors import DuplicateSerialNumber, InvalidArchive
from pasbook.importer.coordinator import ImportCoordinator
from pasbook.models.pass_record import Pass

# Retrying cannot change the outcome of these
NON_RETRYABLE_ERRORS: tuple[type[Exception], ...] = (
    InvalidArchive,
    DuplicateSerialNumber,
)


def import_with_retry(
    coordinator: ImportCoordinator,
    path: Path,
    max_attempts: int | None = None,
    initial_delay: float | None = None,
    multiplier: float | None = None,
    on_retry: Callable[[int], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Pass:
    """
    Import `path`, retrying transient failures with exponential backoff.

    Args:
        coordinator: Coordinator performing each attempt
        path: The .pkpass file, reopened for every attempt
        max_attempts: Total number of attempts
        initial_delay: Seconds to wait before the second attempt
        multiplier: Growth factor of the delay between attempts
        on_retry: Called with the number of the attempt about to start
        sleep: Waiting function

    Returns:
        The imported pass

    Raises:
        The error of the last attempt, or the first non-retryable error
    """
    max_attempts = max_attempts or settings.IMPORT_MAX_ATTEMPTS
    delay = settings.IMPORT_RETRY_DELAY if initial_delay is None else initial_delay
    multiplier = settings.IMPORT_RETRY_MULTIPLIER if multiplier is None else multiplier
    logger = logging.getLogger("ImportRetry")

    attempt = 1
    while True:
        try:
            return coordinator.import_file(path)
        except NON_RETRYABLE_ERRORS:
            raise
        except Exception as e:  # pylint: disable=broad-exception-caught
            if attempt >= max_attempts:
                logger.error(
                    "Giving up on %s after %d attempts: %s", path, attempt, e
                )
                raise
            logger.warning(
                "Attempt %d for %s failed (%s), retrying in %.2fs",
                attempt,
                path,
                e,
                delay,
            )

        attempt += 1
        if on_retry is not None:
            on_retry(attempt)
        sleep(delay)
        delay *= multiplier
