from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from membership_matrix.services.base import EventHook
from membership_matrix.utils import get_logger


logger = get_logger(__name__)


class ToastLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(slots=True)
class ToastMessage:
    title: str
    text: str
    level: ToastLevel = ToastLevel.INFO


class NotificationSink(Protocol):
    def notify_success(self, title: str, message: str) -> None: ...


class NotificationCenter:
    """Publish toasts to whatever front end subscribed to :attr:`published`."""

    def __init__(self) -> None:
        self.published: EventHook[ToastMessage] = EventHook("notifications")

    def notify(self, toast: ToastMessage) -> None:
        logger.debug("Toast published", level=toast.level.value, title=toast.title)
        self.published.emit(toast)

    def notify_success(self, title: str, message: str) -> None:
        self.notify(ToastMessage(title=title, text=message, level=ToastLevel.SUCCESS))

    def notify_error(self, title: str, message: str) -> None:
        self.notify(ToastMessage(title=title, text=message, level=ToastLevel.ERROR))


__all__ = ["NotificationCenter", "NotificationSink", "ToastLevel", "ToastMessage"]
