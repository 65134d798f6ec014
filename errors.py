"""Shared error codes, user-facing messages and error types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from models import SessionState

GENERAL_FAILURE = "GENERAL_FAILURE"
MODEL_NOT_FOUND = "MODEL_NOT_FOUND"
AUDIO_DEVICE_UNAVAILABLE = "AUDIO_DEVICE_UNAVAILABLE"
TIMED_OUT = "TIMED_OUT"
INVALID_AUDIO_FORMAT = "INVALID_AUDIO_FORMAT"
MALFORMED_OUTPUT = "MALFORMED_OUTPUT"
PROCESS_LAUNCH_FAILURE = "PROCESS_LAUNCH_FAILURE"
SESSION_FAILED = "SESSION_FAILED"

ERROR_MESSAGES = {
    GENERAL_FAILURE: "Transcription failed.",
    MODEL_NOT_FOUND: "The configured speech model was not found. Check the model path in the settings.",
    AUDIO_DEVICE_UNAVAILABLE: "No usable audio input device is available.",
    TIMED_OUT: "Transcription took too long and was aborted.",
    INVALID_AUDIO_FORMAT: "The recorded audio could not be processed.",
    MALFORMED_OUTPUT: "The speech engine returned an unreadable result.",
    PROCESS_LAUNCH_FAILURE: "The speech engine could not be started. Check the CLI path in the settings.",
    SESSION_FAILED: "Recording or processing failed unexpectedly.",
}

# Exit codes of the STT executable. Anything not listed is a general failure.
EXIT_CODE_ERRORS = {
    1: GENERAL_FAILURE,
    2: MODEL_NOT_FOUND,
    3: AUDIO_DEVICE_UNAVAILABLE,
    4: TIMED_OUT,
    5: INVALID_AUDIO_FORMAT,
}


@dataclass(frozen=True)
class SttInvocationError:
    code: str
    message: str
    exit_code: Optional[int] = None
    stderr: str = ""
    timeout_s: Optional[float] = None

    @property
    def user_message(self) -> str:
        return ERROR_MESSAGES.get(self.code, ERROR_MESSAGES[GENERAL_FAILURE])

    def __str__(self) -> str:
        if self.exit_code is None:
            return f"{self.code}: {self.message}"
        return f"{self.code}: {self.message} (exit code {self.exit_code})"


class InvalidTransition(Exception):
    """Raised when the session lifecycle is driven along an illegal edge."""

    def __init__(self, from_state: SessionState, to_state: SessionState) -> None:
        super().__init__(f"Invalid state transition: {from_state.value} -> {to_state.value}")
        self.from_state = from_state
        self.to_state = to_state


class ClipboardLockedError(Exception):
    def __init__(self, message: str, retry_count: int) -> None:
        super().__init__(message)
        self.retry_count = retry_count
