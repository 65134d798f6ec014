"""Application entrypoint."""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

from clipboard import ClipboardWriter
from config import JsonConfigStore, ensure_data_root, logs_dir, tmp_dir
from delivery import LoggingErrorPresenter, TranscriptDelivery
from history import HistoryWriter
from hotkey import GlobalHotkeyAdapter
from interfaces import ConfigStore
from models import TransitionEvent
from recorder import SoundDeviceRecorder
from session_controller import SessionController
from stt_adapter import WhisperCliAdapter

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(threadName)s] %(name)s: %(message)s"


def configure_logging(log_dir: Path, level: str = "INFO") -> None:
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.RotatingFileHandler(
        log_dir / "holdtalk.log",
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(), file_handler],
        force=True,
    )


class App:
    def __init__(self, config_store: ConfigStore | None = None) -> None:
        self.config_store: ConfigStore = config_store or JsonConfigStore()
        self.data_root = self.config_store.get_data_root()
        ensure_data_root(self.data_root)
        configure_logging(logs_dir(self.data_root), self.config_store.get_log_level())

        stt_config = self.config_store.get_stt_config()
        self.controller = SessionController(
            capture=SoundDeviceRecorder(),
            transcriber=WhisperCliAdapter(stt_config),
            result_consumer=TranscriptDelivery(
                clipboard=ClipboardWriter(),
                history=HistoryWriter(),
                data_root=self.data_root,
                stt_model=Path(stt_config.model_path).name,
                on_notice=self._on_notice,
            ),
            error_presenter=LoggingErrorPresenter(on_message=self._on_notice),
            scratch_dir=tmp_dir(self.data_root),
            max_recording_s=self.config_store.get_max_recording_s(),
            on_state_change=self._on_state_change,
            on_no_speech=lambda: self._on_notice("No speech detected"),
        )
        self.hotkey = GlobalHotkeyAdapter(hotkey_name=self.config_store.get_hotkey())

    # ------------------------------------------------------------------
    # Callbacks (called from listener and worker threads)
    # ------------------------------------------------------------------

    def _on_state_change(self, event: TransitionEvent) -> None:
        logger.debug("State %s -> %s at %s", event.previous_state.value, event.new_state.value, event.timestamp)

    def _on_notice(self, text: str) -> None:
        print(text, flush=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        try:
            self.hotkey.start(
                on_press=self.controller.on_hotkey_down,
                on_release=self.controller.on_hotkey_up,
            )
        except Exception as exc:
            logger.error("Hotkey disabled: %s", exc)
            self._on_notice(f"Hotkey disabled: {exc}")
            self.controller.close()
            return 1
        logger.info("Ready - hold %s to dictate, Ctrl+C to quit", self.hotkey.hotkey_name)
        try:
            self.hotkey.join()
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self.quit()
        return 0

    def quit(self) -> None:
        self.hotkey.stop()
        self.controller.close()


def main() -> int:
    try:
        app = App()
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
