"""Result and error sinks wired behind the session controller."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from clipboard import ClipboardWriter
from errors import ERROR_MESSAGES, GENERAL_FAILURE, ClipboardLockedError
from history import HistoryWriter
from models import HistoryEntry, SttResult

logger = logging.getLogger(__name__)

NoticeCallback = Callable[[str], None]


@dataclass
class DeliveryReport:
    clipboard_ok: bool
    history_path: Optional[Path]


class TranscriptDelivery:
    """Clipboard first, then history. A failing step never blocks the other."""

    def __init__(
        self,
        clipboard: ClipboardWriter,
        history: HistoryWriter,
        data_root: Path,
        stt_model: str = "",
        on_notice: Optional[NoticeCallback] = None,
    ) -> None:
        self._clipboard = clipboard
        self._history = history
        self._data_root = data_root
        self._stt_model = stt_model
        self._on_notice = on_notice

    def consume(self, result: SttResult) -> DeliveryReport:
        clipboard_ok = False
        try:
            self._clipboard.write(result.text)
            clipboard_ok = True
        except ClipboardLockedError as exc:
            logger.error("Clipboard locked - cannot write (retries=%d): %s", exc.retry_count, exc)
        except RuntimeError as exc:
            logger.error("Clipboard write failed: %s", exc)

        history_path: Optional[Path] = None
        entry = HistoryEntry(
            created=datetime.now().astimezone(),
            text=result.text,
            language=result.language,
            stt_model=self._stt_model,
            duration_s=result.duration_s,
            post_processed=result.post_processed,
        )
        try:
            history_path = self._history.write(entry, self._data_root)
        except OSError as exc:
            logger.warning("History write failed - continuing anyway: %s", exc)

        if clipboard_ok:
            self._notify("Transcript copied to clipboard")
        else:
            self._notify("Transcript saved (clipboard failed)")
        return DeliveryReport(clipboard_ok=clipboard_ok, history_path=history_path)

    def _notify(self, text: str) -> None:
        logger.info(text)
        if self._on_notice:
            self._on_notice(text)


class LoggingErrorPresenter:
    """Logs the user-facing message and forwards it to an optional callback."""

    def __init__(self, on_message: Optional[NoticeCallback] = None) -> None:
        self._on_message = on_message
        self.last_code: Optional[str] = None

    def present(self, code: str, message: str) -> None:
        self.last_code = code
        text = message or ERROR_MESSAGES.get(code, ERROR_MESSAGES[GENERAL_FAILURE])
        logger.error("%s: %s", code, text)
        if self._on_message:
            self._on_message(f"{code}: {text}")
