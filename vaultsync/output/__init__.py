# vaultsync Output Module
# Rich console notifications and summaries

from vaultsync.notify import Notifier
from vaultsync.output.console import Console, create_console

__all__ = [
    "Console",
    "Notifier",
    "create_console",
]
