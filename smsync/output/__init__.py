# SMSYNC Output Module
# Rich console output

from smsync.output.console import Console, create_console

__all__ = [
    "Console",
    "create_console",
]
