"""STT adapter invoking a whisper-style CLI as a subprocess.

The CLI is called as::

    <cli> --model <model> --language <lang> --output-format json \
          --output-file <json path> <wav path>

Arguments are always passed as a list, never through a shell. The process
runs under the configured timeout; on expiry (or when the caller's cancel
event fires) the whole process tree is killed. Expected failures come back
as ``SttInvocationError`` values rather than exceptions.
"""

from __future__ import annotations

import json
import logging
import os
import signal
import subprocess
import sys
import tempfile
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import IO, Any, Optional, Union

import psutil

from errors import (
    EXIT_CODE_ERRORS,
    GENERAL_FAILURE,
    MALFORMED_OUTPUT,
    PROCESS_LAUNCH_FAILURE,
    TIMED_OUT,
    SttInvocationError,
)
from models import SttInvocationConfig, SttResult, SttSegment

logger = logging.getLogger(__name__)

TranscribeOutcome = Union[SttResult, SttInvocationError]

_EXIT_CODE_MESSAGES = {
    1: "STT engine reported a processing failure",
    2: "STT model not found",
    3: "Audio device not available",
    4: "STT engine timed out",
    5: "Invalid audio file",
}


def map_exit_code(exit_code: int, stderr: str = "") -> Optional[SttInvocationError]:
    """Map a CLI exit code to an error; ``None`` means success."""
    if exit_code == 0:
        return None
    code = EXIT_CODE_ERRORS.get(exit_code, GENERAL_FAILURE)
    message = _EXIT_CODE_MESSAGES.get(exit_code, f"Unknown STT error (exit code {exit_code})")
    return SttInvocationError(code=code, message=message, exit_code=exit_code, stderr=stderr)


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{name}' must be a number, got {type(value).__name__}")
    return float(value)


def _string(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"'{name}' must be a string, got {type(value).__name__}")
    return value


def parse_result(data: Any) -> SttResult:
    """Build an ``SttResult`` from decoded JSON. Unknown keys are ignored.

    Raises ``ValueError`` when the document does not have the required shape.
    """
    if not isinstance(data, dict):
        raise ValueError("STT output must be a JSON object")
    for key in ("text", "language", "duration_sec"):
        if key not in data:
            raise ValueError(f"STT output is missing '{key}'")

    segments: Optional[tuple[SttSegment, ...]] = None
    raw_segments = data.get("segments")
    if raw_segments is not None:
        if not isinstance(raw_segments, list):
            raise ValueError("'segments' must be a list")
        parsed = []
        for index, item in enumerate(raw_segments):
            if not isinstance(item, dict):
                raise ValueError(f"segment {index} must be an object")
            parsed.append(
                SttSegment(
                    start=_number(item.get("start"), f"segments[{index}].start"),
                    end=_number(item.get("end"), f"segments[{index}].end"),
                    text=_string(item.get("text", ""), f"segments[{index}].text"),
                )
            )
        segments = tuple(parsed)

    meta = data.get("meta")
    if meta is not None and not isinstance(meta, dict):
        raise ValueError("'meta' must be an object")

    return SttResult(
        text=_string(data["text"], "text"),
        language=_string(data["language"], "language"),
        duration_s=_number(data["duration_sec"], "duration_sec"),
        segments=segments,
        meta=meta,
    )


def kill_process_tree(pid: int, wait_s: float = 3.0, process_group: bool = False) -> None:
    """Kill ``pid`` and every process it spawned.

    With ``process_group`` (POSIX) the process group led by ``pid`` is killed
    as well. That also reaches helpers whose parent already exited and which
    no longer show up as descendants.
    """
    procs: list[psutil.Process] = []
    try:
        parent = psutil.Process(pid)
        procs = parent.children(recursive=True)
        procs.append(parent)
    except psutil.NoSuchProcess:
        pass

    if process_group:
        try:
            os.killpg(pid, signal.SIGKILL)
        except ProcessLookupError:
            logger.debug("Process group %s already gone", pid)

    for proc in procs:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            continue
    _gone, alive = psutil.wait_procs(procs, timeout=wait_s)
    for proc in alive:
        logger.warning("Process %s survived kill", proc.pid)


def _drain(stream: IO[str], sink: list[str]) -> None:
    try:
        for line in stream:
            sink.append(line)
    except (OSError, ValueError):
        pass
    finally:
        stream.close()


class WhisperCliAdapter:
    """Turns a validated WAV file into an ``SttResult`` or ``SttInvocationError``."""

    def __init__(
        self,
        config: SttInvocationConfig,
        poll_interval_s: float = 0.05,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config
        self._poll_interval_s = poll_interval_s
        self._log = log or logger

    @property
    def config(self) -> SttInvocationConfig:
        return self._config

    def build_command(self, wav_path: Path, output_path: Path) -> list[str]:
        return [
            self._config.cli_path,
            "--model",
            self._config.model_path,
            "--language",
            self._config.language,
            "--output-format",
            "json",
            "--output-file",
            str(output_path),
            str(wav_path),
        ]

    def transcribe(
        self,
        wav_path: str | os.PathLike[str],
        cancel_event: Optional[threading.Event] = None,
    ) -> TranscribeOutcome:
        wav = Path(wav_path)
        if not wav.is_file():
            return SttInvocationError(code=GENERAL_FAILURE, message=f"WAV file not found: {wav}")

        output_path = self._output_path_for(wav)
        command = self.build_command(wav, output_path)
        self._log.info(
            "Invoking STT CLI %s (input=%s, output=%s, timeout=%ss)",
            command,
            wav,
            output_path,
            self._config.timeout_s,
        )

        outcome = self._execute(command, cancel_event)
        if isinstance(outcome, SttInvocationError):
            self._log.error("STT invocation failed: %s", outcome)
            return outcome

        exit_code, _stdout, stderr = outcome
        error = map_exit_code(exit_code, stderr)
        if error is not None:
            self._log.error("STT CLI exited with %s: %s; stderr: %s", exit_code, error.message, stderr.strip())
            return error

        result = self.parse_output(output_path)
        if isinstance(result, SttResult):
            self._log.info(
                "Transcription completed (language=%s, duration=%.1fs, empty=%s)",
                result.language,
                result.duration_s,
                result.is_empty,
            )
        return result

    def parse_output(self, json_path: Path) -> TranscribeOutcome:
        if not json_path.is_file():
            self._log.error("STT output file not found: %s", json_path)
            return SttInvocationError(code=MALFORMED_OUTPUT, message=f"STT output file not found: {json_path}")
        try:
            content = json_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self._log.error("Cannot read STT output %s: %s", json_path, exc)
            return SttInvocationError(code=MALFORMED_OUTPUT, message=f"Cannot read STT output: {exc}")
        try:
            return parse_result(json.loads(content))
        except (json.JSONDecodeError, ValueError, RecursionError) as exc:
            self._log.error("Invalid STT output in %s: %s; content: %r", json_path, exc, content[:500])
            return SttInvocationError(code=MALFORMED_OUTPUT, message=f"Invalid JSON format in STT output: {exc}")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _output_path_for(self, wav: Path) -> Path:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S%f")
        candidate = wav.parent / f"stt_result_{stamp}.json"
        counter = 2
        while candidate.exists():
            candidate = wav.parent / f"stt_result_{stamp}_{counter}.json"
            counter += 1
        return candidate

    def _execute(
        self,
        command: list[str],
        cancel_event: Optional[threading.Event],
    ) -> Union[tuple[int, str, str], SttInvocationError]:
        timeout_s = self._config.timeout_s
        popen_kwargs: dict[str, Any] = {}
        if sys.platform == "win32":
            popen_kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW
        else:
            popen_kwargs["start_new_session"] = True

        try:
            proc = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
                cwd=tempfile.gettempdir(),
                **popen_kwargs,
            )
        except OSError as exc:
            return SttInvocationError(
                code=PROCESS_LAUNCH_FAILURE,
                message=f"Failed to execute STT CLI '{command[0]}': {exc}",
            )

        stdout_lines: list[str] = []
        stderr_lines: list[str] = []
        readers = [
            threading.Thread(target=_drain, args=(proc.stdout, stdout_lines), daemon=True),
            threading.Thread(target=_drain, args=(proc.stderr, stderr_lines), daemon=True),
        ]
        for reader in readers:
            reader.start()

        deadline = time.monotonic() + timeout_s
        while True:
            try:
                proc.wait(timeout=self._poll_interval_s)
                break
            except subprocess.TimeoutExpired:
                cancelled = cancel_event is not None and cancel_event.is_set()
                if cancelled or time.monotonic() >= deadline:
                    kill_process_tree(proc.pid, process_group=sys.platform != "win32")
                    proc.wait()
                    self._join(readers)
                    reason = "cancelled" if cancelled else "timed out"
                    self._log.warning("STT CLI process tree killed (%s after %ss)", reason, timeout_s)
                    return SttInvocationError(
                        code=TIMED_OUT,
                        message=f"Transcription {reason} and was aborted (timeout: {timeout_s}s)",
                        stderr="".join(stderr_lines),
                        timeout_s=timeout_s,
                    )

        self._join(readers)
        return proc.returncode, "".join(stdout_lines), "".join(stderr_lines)

    def _join(self, readers: list[threading.Thread]) -> None:
        for reader in readers:
            reader.join(timeout=1.0)
