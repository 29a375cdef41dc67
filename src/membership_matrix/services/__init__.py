"""Service layer over the directory."""

from .base import EventHook, MutationStatus, ServiceErrorEvent, Subscriber, track_mutation
from .directory import (
    DirectoryBackend,
    DirectoryService,
    MembershipChangeEvent,
)
from .notifications import NotificationCenter, NotificationSink, ToastLevel, ToastMessage

__all__ = [
    "EventHook",
    "MutationStatus",
    "ServiceErrorEvent",
    "Subscriber",
    "track_mutation",
    "DirectoryBackend",
    "DirectoryService",
    "MembershipChangeEvent",
    "NotificationCenter",
    "NotificationSink",
    "ToastLevel",
    "ToastMessage",
]
