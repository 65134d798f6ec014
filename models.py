"""Core data models for the dictation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class SessionState(str, Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"
    PROCESSING = "PROCESSING"
    POST_PROCESSING = "POST_PROCESSING"


@dataclass(frozen=True)
class TransitionEvent:
    previous_state: SessionState
    new_state: SessionState
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class SttInvocationConfig:
    """Immutable settings for one STT executable/model pair."""

    cli_path: str
    model_path: str
    language: str = "de"
    timeout_s: float = 60.0

    def __post_init__(self) -> None:
        if not self.cli_path.strip():
            raise ValueError("STT CLI path must be specified")
        if not self.model_path.strip():
            raise ValueError("STT model path must be specified")
        if not self.language.strip():
            raise ValueError("STT language must be specified")
        if self.timeout_s <= 0:
            raise ValueError("STT timeout must be greater than 0 seconds")


@dataclass(frozen=True)
class SttSegment:
    start: float
    end: float
    text: str


@dataclass(frozen=True)
class SttResult:
    text: str
    language: str
    duration_s: float
    segments: Optional[tuple[SttSegment, ...]] = None
    meta: Optional[dict[str, Any]] = None
    post_processed: bool = False

    @property
    def is_empty(self) -> bool:
        """True when no speech was recognised."""
        return not self.text.strip()


@dataclass(frozen=True)
class WavFormatViolation:
    field: str
    expected: Any
    actual: Any
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class HistoryEntry:
    created: datetime
    text: str
    language: str = ""
    stt_model: str = ""
    duration_s: float = 0.0
    post_processed: bool = False
