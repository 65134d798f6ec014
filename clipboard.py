"""Clipboard writer for finished transcripts."""

from __future__ import annotations

import logging
import time

from errors import ClipboardLockedError

try:
    import pyperclip
except Exception:  # pragma: no cover
    pyperclip = None  # type: ignore

logger = logging.getLogger(__name__)


class ClipboardWriter:
    def __init__(self, max_retries: int = 1, retry_delay_s: float = 0.1) -> None:
        self._max_retries = max_retries
        self._retry_delay_s = retry_delay_s

    def write(self, text: str) -> None:
        if not text:
            logger.warning("Attempted to write empty text to clipboard")
            return
        if pyperclip is None:
            raise RuntimeError("pyperclip is not installed")

        last_error: Exception | None = None
        for attempt in range(self._max_retries + 1):
            try:
                pyperclip.copy(text)
            except pyperclip.PyperclipException as exc:
                last_error = exc
                logger.warning("Clipboard write attempt %d failed: %s", attempt + 1, exc)
                if attempt < self._max_retries:
                    time.sleep(self._retry_delay_s)
                continue
            logger.info("Clipboard write succeeded (%d characters, attempt %d)", len(text), attempt + 1)
            return

        raise ClipboardLockedError(
            f"Clipboard unavailable after {self._max_retries + 1} attempts: {last_error}",
            retry_count=self._max_retries,
        )
