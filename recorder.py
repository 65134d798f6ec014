"""Microphone recorder writing 16 kHz mono 16-bit WAV files."""

from __future__ import annotations

import logging
import threading
import wave
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger(__name__)


class SoundDeviceRecorder:
    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_ms: int = 50,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self._stream: Any = None
        self._writer: Optional[wave.Wave_write] = None
        self._output_path: Optional[Path] = None
        self._running = False
        self._lock = threading.Lock()
        self.frames_written = 0

    @property
    def is_recording(self) -> bool:
        return self._running

    def is_microphone_available(self) -> bool:
        if sd is None:
            return False
        try:
            devices = sd.query_devices()
        except Exception as exc:
            logger.warning("Failed to query audio devices: %s", exc)
            return False
        return any(device.get("max_input_channels", 0) > 0 for device in devices)

    def start(self, output_dir: Path) -> None:
        with self._lock:
            if self._running:
                raise RuntimeError("Already recording")
            if sd is None:
                raise RuntimeError("sounddevice is not installed")

            output_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now().strftime("%Y%m%d_%H%M%S%f")
            self._output_path = output_dir / f"rec_{stamp}.wav"
            self.frames_written = 0
            try:
                self._writer = wave.open(str(self._output_path), "wb")
                self._writer.setnchannels(self.channels)
                self._writer.setsampwidth(2)
                self._writer.setframerate(self.sample_rate)
                blocksize = int(self.sample_rate * (self.chunk_ms / 1000.0))
                self._stream = sd.InputStream(
                    samplerate=self.sample_rate,
                    channels=self.channels,
                    dtype="int16",
                    blocksize=blocksize,
                    callback=self._on_audio,
                )
                self._running = True
                self._stream.start()
            except Exception:
                self._running = False
                self._cleanup()
                raise
            logger.info(
                "Audio recording started (%s, %d Hz, %d ch)",
                self._output_path,
                self.sample_rate,
                self.channels,
            )

    def stop(self) -> Path:
        with self._lock:
            if not self._running or self._output_path is None:
                raise RuntimeError("Not currently recording")
            self._running = False
            path = self._output_path
            self._cleanup()
            logger.info("Audio recording stopped (%s, %d frames)", path, self.frames_written)
            return path

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if status:
            logger.debug("Audio input status: %s", status)
        if not self._running or self._writer is None or np is None:
            return
        payload = np.asarray(indata, dtype=np.int16).tobytes()
        self._writer.writeframes(payload)
        self.frames_written += frames

    def _cleanup(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop()
            stream.close()
        writer, self._writer = self._writer, None
        if writer is not None:
            writer.close()
