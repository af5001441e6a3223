# bmsync Output Module
# Rich console output

from bmsync.output.console import Console, create_console

__all__ = [
    "Console",
    "create_console",
]
