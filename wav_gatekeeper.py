"""WAV format gatekeeping before the STT executable sees a file.

The STT tool expects a RIFF/WAVE container holding 16 kHz, mono, 16-bit
linear PCM. Anything else is rejected here with a ``WavFormatViolation``
naming the offending field, so malformed input never reaches (and never
hangs) the external process.
"""

from __future__ import annotations

import logging
import os
import struct
from datetime import datetime
from pathlib import Path
from typing import Optional

from models import WavFormatViolation

logger = logging.getLogger(__name__)

EXPECTED_SAMPLE_RATE = 16000
EXPECTED_CHANNELS = 1
EXPECTED_BITS_PER_SAMPLE = 16
EXPECTED_AUDIO_FORMAT = 1  # WAVE_FORMAT_PCM

MIN_WAV_SIZE = 44
MIN_FMT_CHUNK_SIZE = 16
FAILED_DIR_NAME = "failed"

_RIFF_HEADER = struct.Struct("<4sI4s")
_CHUNK_HEADER = struct.Struct("<4sI")
_FMT_BODY = struct.Struct("<HHIIHH")


def _violation(field: str, expected: object, actual: object, message: str) -> WavFormatViolation:
    return WavFormatViolation(field=field, expected=expected, actual=actual, message=message)


def validate_wav(path: str | os.PathLike[str]) -> Optional[WavFormatViolation]:
    """Return ``None`` if the file satisfies the input contract, else the first violation."""
    wav_path = Path(path)
    if not wav_path.is_file():
        return _violation("file", "existing file", None, f"File not found: {wav_path}")

    try:
        size = wav_path.stat().st_size
        if size < MIN_WAV_SIZE:
            return _violation(
                "size",
                MIN_WAV_SIZE,
                size,
                f"Invalid WAV file: file too small ({size} bytes, need at least {MIN_WAV_SIZE})",
            )
        with wav_path.open("rb") as fh:
            return _check_header(fh, size)
    except OSError as exc:
        return _violation("file", "readable file", str(exc), f"Error reading WAV file: {exc}")


def _check_header(fh, size: int) -> Optional[WavFormatViolation]:  # noqa: ANN001
    riff, _riff_size, wave = _RIFF_HEADER.unpack(fh.read(_RIFF_HEADER.size))
    if riff != b"RIFF":
        return _violation("riff", "RIFF", _tag(riff), "Invalid WAV file header: expected 'RIFF'")
    if wave != b"WAVE":
        return _violation("wave", "WAVE", _tag(wave), "Invalid WAV file header: expected 'WAVE' format")

    # Some writers put JUNK/LIST chunks before "fmt ", so walk the chunk list.
    offset = _RIFF_HEADER.size
    while offset + _CHUNK_HEADER.size <= size:
        fh.seek(offset)
        chunk_id, chunk_size = _CHUNK_HEADER.unpack(fh.read(_CHUNK_HEADER.size))
        if chunk_id == b"fmt ":
            return _check_fmt(fh, chunk_size)
        if chunk_id == b"data":
            break
        offset += _CHUNK_HEADER.size + chunk_size + (chunk_size & 1)

    return _violation("fmt_chunk", "fmt ", None, "Invalid WAV file: missing 'fmt ' chunk")


def _check_fmt(fh, chunk_size: int) -> Optional[WavFormatViolation]:  # noqa: ANN001
    if chunk_size < MIN_FMT_CHUNK_SIZE:
        return _violation(
            "fmt_size",
            MIN_FMT_CHUNK_SIZE,
            chunk_size,
            f"Invalid WAV file: fmt chunk too small ({chunk_size} bytes)",
        )
    body = fh.read(_FMT_BODY.size)
    if len(body) < _FMT_BODY.size:
        return _violation("fmt_size", _FMT_BODY.size, len(body), "Invalid WAV file: truncated fmt chunk")

    audio_format, channels, sample_rate, _byte_rate, _block_align, bits = _FMT_BODY.unpack(body)
    if audio_format != EXPECTED_AUDIO_FORMAT:
        return _violation(
            "audio_format",
            EXPECTED_AUDIO_FORMAT,
            audio_format,
            f"Invalid audio format: expected PCM ({EXPECTED_AUDIO_FORMAT}), got {audio_format}",
        )
    if channels != EXPECTED_CHANNELS:
        return _violation(
            "channels",
            EXPECTED_CHANNELS,
            channels,
            f"Invalid channel count: expected {EXPECTED_CHANNELS} (mono), got {channels}",
        )
    if sample_rate != EXPECTED_SAMPLE_RATE:
        return _violation(
            "sample_rate",
            EXPECTED_SAMPLE_RATE,
            sample_rate,
            f"Invalid sample rate: expected {EXPECTED_SAMPLE_RATE} Hz, got {sample_rate} Hz",
        )
    if bits != EXPECTED_BITS_PER_SAMPLE:
        return _violation(
            "bits_per_sample",
            EXPECTED_BITS_PER_SAMPLE,
            bits,
            f"Invalid bit depth: expected {EXPECTED_BITS_PER_SAMPLE} bits, got {bits} bits",
        )
    return None


def _tag(raw: bytes) -> str:
    return raw.decode("ascii", errors="replace")


def quarantine_wav(path: str | os.PathLike[str]) -> Optional[Path]:
    """Move a rejected WAV into a ``failed/`` directory next to it.

    Returns the new location, or ``None`` when the file is already gone.
    """
    source = Path(path)
    if not source.exists():
        logger.warning("Cannot quarantine %s: file not found", source)
        return None

    failed_dir = source.parent / FAILED_DIR_NAME
    failed_dir.mkdir(parents=True, exist_ok=True)
    target = failed_dir / source.name
    if target.exists():
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S%f")
        target = failed_dir / f"{source.stem}_{stamp}{source.suffix}"

    source.replace(target)
    logger.info("Moved invalid WAV file %s to %s", source, target)
    return target
