# vaultsync Notifications
# Side-channel for short user-facing messages

from typing import Protocol


class Notifier(Protocol):
    """Short human-readable messages shown to the user."""

    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...
