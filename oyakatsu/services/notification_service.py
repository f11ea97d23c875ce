"""Delivery of verification codes to phones and mailboxes.

Real SMS/email delivery is not wired up; the default notifier writes the
code to the log so it can be picked up during development.
"""

import logging

from oyakatsu.models.enums import VerificationType

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Raised by a notifier when a code could not be delivered."""


class Notifier:
    def send_code(self, target: str, code_type: VerificationType, code: str) -> None:
        raise NotImplementedError


class LogNotifier(Notifier):
    def send_code(self, target: str, code_type: VerificationType, code: str) -> None:
        logger.info("Verification code for %s (%s): %s", target, code_type.value, code)
