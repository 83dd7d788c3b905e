"""
Background email dispatcher - Implements EmailDispatcher protocol.

Each lifecycle email is a one-shot job on a bounded thread pool. A job
retries with exponential backoff and gives up after max_attempts; the
outcome is only logged, the request that scheduled it has already
returned.
"""

import logging
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor

from src.domain.ports import EmailData, EmailSender

logger = logging.getLogger(__name__)


class BackgroundEmailDispatcher:
    """
    Schedules email delivery on a ThreadPoolExecutor.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        sender: EmailSender,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        max_workers: int = 2,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._sender = sender
        self._max_attempts = max(max_attempts, 1)
        self._backoff_seconds = backoff_seconds
        self._sleep = sleep
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="email")

    def dispatch(self, email: EmailData) -> Future[bool] | None:
        """
        Schedule delivery and return immediately.

        Returns:
            Future resolving to True when delivered, False when every
            attempt failed; None if the dispatcher is already shut down
        """
        try:
            return self._executor.submit(self._deliver, email)
        except RuntimeError:
            logger.error(
                "Email dispatcher is shut down, dropped %s email for %s",
                email.subject.value,
                email.recipient.email,
            )
            return None

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _deliver(self, email: EmailData) -> bool:
        for attempt in range(1, self._max_attempts + 1):
            try:
                self._sender.send(email)
            except Exception as exc:
                logger.warning(
                    "Sending %s email to %s failed (attempt %d/%d): %s",
                    email.subject.value,
                    email.recipient.email,
                    attempt,
                    self._max_attempts,
                    exc,
                )
                if attempt < self._max_attempts:
                    self._sleep(self._backoff_seconds * 2 ** (attempt - 1))
                continue

            logger.info("Sent %s email to %s", email.subject.value, email.recipient.email)
            return True

        logger.error(
            "Giving up on %s email to %s after %d attempts",
            email.subject.value,
            email.recipient.email,
            self._max_attempts,
        )
        return False
