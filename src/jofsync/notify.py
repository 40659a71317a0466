"""Desktop notifications for sync results."""

from __future__ import annotations

import json
import logging
import shutil
import subprocess

logger = logging.getLogger("jofsync.notify")

APP_TITLE = "JIRA OmniFocus Sync"
NOTIFY_TIMEOUT = 10


class Notifier:
    """Sends macOS notifications; never raises.

    Uses ``terminal-notifier`` when it is on PATH, otherwise AppleScript's
    ``display notification``.
    """

    def __init__(self, enabled: bool = True) -> None:
        """Initialize the Notifier.

        Args:
            enabled: When False, notify() only logs.
        """
        self.enabled = enabled

    def build_command(self, title: str, text: str) -> list[str]:
        """Build the command line that shows a notification."""
        terminal_notifier = shutil.which("terminal-notifier")
        if terminal_notifier:
            return [
                terminal_notifier,
                "-title",
                APP_TITLE,
                "-subtitle",
                title,
                "-message",
                text,
                "-sound",
                "default",
            ]
        # json.dumps yields a valid AppleScript string literal for plain text
        script = (
            f"display notification {json.dumps(text)} "
            f"with title {json.dumps(APP_TITLE)} subtitle {json.dumps(title)}"
        )
        return ["osascript", "-e", script]

    def notify(self, event: str, title: str, text: str) -> None:
        """Show a notification.

        Args:
            event: Event name, for the log (e.g. "sync_failed")
            title: Short headline
            text: Body text
        """
        logger.debug("Notification %s: %s - %s", event, title, text)
        if not self.enabled:
            return
        try:
            subprocess.run(
                self.build_command(title, text),
                capture_output=True,
                text=True,
                check=True,
                timeout=NOTIFY_TIMEOUT,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("Failed to send notification: %s", e)
