"""
Completion notifications.

Uses the desktop notification tool of the platform when one is installed
(notify-send, osascript) and otherwise prints a panel to the console.
"""

import logging
import shutil
import subprocess
import sys
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel

from .interfaces import INotifier

LOG = logging.getLogger(__name__)

NOTIFY_TIMEOUT = 5.0


class ConsoleNotifier(INotifier):
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False)

    def notify(self, title: str, message: str) -> bool:
        self.console.print(Panel(message, title=title, border_style="green"))
        return True


class DesktopNotifier(INotifier):
    """Desktop popup with a console fallback."""

    def __init__(self, console: Optional[Console] = None):
        self.fallback = ConsoleNotifier(console)

    def notify(self, title: str, message: str) -> bool:
        command = self._command(title, message)
        if command is None:
            return self.fallback.notify(title, message)

        try:
            result = subprocess.run(
                command,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=NOTIFY_TIMEOUT,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            LOG.debug(f"Desktop notification failed: {e}")
            return self.fallback.notify(title, message)

        if result.returncode != 0:
            return self.fallback.notify(title, message)
        return True

    @staticmethod
    def _command(title: str, message: str) -> Optional[List[str]]:
        if sys.platform.startswith("linux") and shutil.which("notify-send"):
            return ["notify-send", title, message]
        if sys.platform == "darwin" and shutil.which("osascript"):
            script = f"display notification {_quote(message)} with title {_quote(title)}"
            return ["osascript", "-e", script]
        return None


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'
