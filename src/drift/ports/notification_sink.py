"""Notification sink interface."""

from typing import Protocol

from drift.core.nudges import Notification


class NotificationSink(Protocol):
    """Fire-and-forget delivery of user-facing notifications."""

    def show(self, notification: Notification) -> None:
        ...
