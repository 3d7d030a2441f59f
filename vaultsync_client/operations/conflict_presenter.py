"""
VaultSync Client - Conflict Presenter

Shows a conflict to the user and collects their choice. The editor surface
is not part of this package; it plugs in through ConflictNotifier.

Author: VaultSync Project
"""

import logging
import sys
from typing import Optional, TextIO

from vaultsync_client.models import ConflictView, Resolution

# Configure logging
logger = logging.getLogger(__name__)

PREVIEW_CHARS = 500


class ConflictNotifier:
    """
    Interface between the sync engine and whatever displays conflicts.

    The default implementation defers every decision, which leaves the
    conflict recorded until it is resolved later.
    """

    def choose_resolution(self, view: ConflictView) -> Optional[Resolution]:
        """
        Ask the user which version to keep.

        Returns:
            The chosen Resolution, or None to decide later
        """
        return None

    def reload_editor(self, path: str, content: str):
        """Replace the editor's buffer after the server's version was kept."""
        pass


class ConsoleConflictNotifier(ConflictNotifier):
    """
    Prompts for a resolution on a terminal.
    """

    def __init__(self, input_stream: Optional[TextIO] = None, output_stream: Optional[TextIO] = None):
        self.input_stream = input_stream or sys.stdin
        self.output_stream = output_stream or sys.stdout

    def _write(self, text: str = ""):
        print(text, file=self.output_stream)

    @staticmethod
    def _preview(content: str) -> str:
        if len(content) <= PREVIEW_CHARS:
            return content
        return content[:PREVIEW_CHARS] + f"\n... ({len(content) - PREVIEW_CHARS} more characters)"

    def choose_resolution(self, view: ConflictView) -> Optional[Resolution]:
        self._write()
        self._write(f"CONFLICT: {view.path} was changed on the server and locally.")
        self._write("-" * 60)
        self._write("Your version:")
        self._write(self._preview(view.local_content))
        self._write("-" * 60)
        self._write(f"Server version (modified {view.server_modified}):")
        self._write(self._preview(view.server_content))
        self._write("-" * 60)

        while True:
            print("Keep [l]ocal, keep [s]erver, or [d]ecide later? ", end="", file=self.output_stream, flush=True)
            answer = self.input_stream.readline()
            if not answer:
                return None
            answer = answer.strip().lower()
            if answer in ("l", "local"):
                return Resolution.KEEP_LOCAL
            if answer in ("s", "server"):
                return Resolution.KEEP_SERVER
            if answer in ("d", "later", ""):
                return None
            self._write(f"Unrecognized choice: {answer}")

    def reload_editor(self, path: str, content: str):
        self._write(f"{path} now has the server's content.")


class ConflictPresenter:
    """
    Tracks the conflict currently on screen and relays the user's choice.
    """

    def __init__(self, notifier: Optional[ConflictNotifier] = None):
        self.notifier = notifier or ConflictNotifier()
        self.current: Optional[ConflictView] = None

    def present(self, view: ConflictView) -> Optional[Resolution]:
        """
        Show a conflict and return the user's choice.

        Args:
            view: Both versions of the file

        Returns:
            Resolution, or None when the user defers
        """
        logger.info(f"Presenting conflict on {view.path} (server version {view.server_modified})")
        self.current = view
        resolution = self.notifier.choose_resolution(view)
        if resolution is None:
            logger.info(f"Resolution of {view.path} deferred")
        else:
            logger.info(f"User chose {resolution.value} for {view.path}")
            self.current = None
        return resolution

    def reload_editor(self, path: str, content: str):
        self.notifier.reload_editor(path, content)
