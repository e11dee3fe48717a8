"""
Clipboard sinks for CLIPBOARD nodes.
"""

from typing import List, Optional, Sequence, Union
import asyncio
import shlex
import logging

from flowforge.core import config

logger = logging.getLogger(__name__)


class ClipboardError(Exception):
    """The clipboard could not be written."""


class MemoryClipboard:
    """Keeps written text in process memory. Default for server deployments."""

    def __init__(self):
        self.contents: Optional[str] = None
        self.history: List[str] = []

    async def write_text(self, text: str) -> None:
        self.contents = text
        self.history.append(text)


class DisabledClipboard:
    """Rejects every write, like a browser without clipboard permission."""

    def __init__(self, reason: str = "Clipboard is not available in this environment"):
        self.reason = reason

    async def write_text(self, text: str) -> None:
        raise ClipboardError(self.reason)


class CommandClipboard:
    """Pipes text into an OS clipboard tool such as `xclip` or `pbcopy`."""

    def __init__(self, command: Union[str, Sequence[str]], timeout: float = 5.0):
        self.command = shlex.split(command) if isinstance(command, str) else list(command)
        self.timeout = timeout

    async def write_text(self, text: str) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise ClipboardError(f"Clipboard command unavailable: {self.command[0]}") from e

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(text.encode("utf-8")), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            proc.kill()
            raise ClipboardError(f"Clipboard command timed out after {self.timeout}s") from e

        if proc.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise ClipboardError(detail or f"Clipboard command exited with {proc.returncode}")


def create_clipboard(backend: Optional[str] = None):
    """Build the clipboard sink selected by configuration."""
    backend = (backend or config.CLIPBOARD_BACKEND).lower()
    if backend == "command":
        return CommandClipboard(config.CLIPBOARD_COMMAND)
    if backend == "disabled":
        return DisabledClipboard()
    if backend != "memory":
        logger.warning(f"Unknown clipboard backend '{backend}', using memory")
    return MemoryClipboard()
