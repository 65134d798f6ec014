"""Protocol interfaces used by SessionController."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional, Protocol, Union

from errors import SttInvocationError
from models import SttInvocationConfig, SttResult


class AudioCapture(Protocol):
    def is_microphone_available(self) -> bool: ...

    def start(self, output_dir: Path) -> None: ...

    def stop(self) -> Path: ...


class Transcriber(Protocol):
    def transcribe(
        self,
        wav_path: Path,
        cancel_event: Optional[threading.Event] = None,
    ) -> Union[SttResult, SttInvocationError]: ...


class PostProcessor(Protocol):
    def process(self, result: SttResult) -> SttResult: ...


class ResultConsumer(Protocol):
    def consume(self, result: SttResult) -> object: ...


class ErrorPresenter(Protocol):
    def present(self, code: str, message: str) -> None: ...


class ConfigStore(Protocol):
    def get_hotkey(self) -> str: ...

    def set_hotkey(self, hotkey: str) -> None: ...

    def get_data_root(self) -> Path: ...

    def get_log_level(self) -> str: ...

    def get_max_recording_s(self) -> Optional[float]: ...

    def get_stt_config(self) -> SttInvocationConfig: ...
