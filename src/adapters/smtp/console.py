"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging lifecycle tokens for development setups
where no SMTP server is configured.
"""

import logging

from src.domain.ports import EmailData

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def send(self, email: EmailData) -> None:
        """
        Log the lifecycle token instead of delivering it.

        The token is logged at INFO level to be visible in docker-compose logs.

        Args:
            email: Subject, recipient and token of the lifecycle email
        """
        logger.info(
            "[%s] Email: %s Token: %s",
            email.subject.value.upper(),
            email.recipient.email,
            email.token,
        )
