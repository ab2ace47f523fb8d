"""Port for user-visible feedback."""

import logging
from abc import abstractmethod
from enum import Enum
from typing import Protocol

from projdup.domain.shared.port import Port

logger = logging.getLogger(__name__)


class Variant(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notifier(Port, Protocol):
    """Shows a message to the user. Delivery is best-effort."""

    @abstractmethod
    def notify(self, message: str, variant: Variant = Variant.INFO) -> None: ...


def notify_safely(notifier: Notifier, message: str, variant: Variant = Variant.INFO) -> None:
    """Deliver a notification; a failing notifier is logged and otherwise ignored."""
    try:
        notifier.notify(message, variant)
    except Exception:
        logger.exception("Notifier failed to deliver %s message: %s", variant.value, message)
