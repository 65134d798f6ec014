from __future__ import annotations

import wave
from pathlib import Path

import pytest

from wav_gatekeeper import quarantine_wav, validate_wav


def test_valid_wav_passes(make_wav) -> None:  # noqa: ANN001
    assert validate_wav(make_wav()) is None


def test_wav_written_by_wave_module_passes(tmp_path: Path) -> None:
    path = tmp_path / "wave.wav"
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(16000)
        wf.writeframes(b"\x00\x00" * 1600)

    assert validate_wav(path) is None


def test_junk_chunk_before_fmt_is_skipped(make_wav) -> None:  # noqa: ANN001
    assert validate_wav(make_wav(junk=True)) is None


def test_wrong_sample_rate_names_expected_and_actual(make_wav) -> None:  # noqa: ANN001
    violation = validate_wav(make_wav(sample_rate=44100))

    assert violation is not None
    assert violation.field == "sample_rate"
    assert violation.expected == 16000
    assert violation.actual == 44100
    assert "16000" in violation.message and "44100" in violation.message


@pytest.mark.parametrize(
    "kwargs,field,expected,actual",
    [
        ({"channels": 2}, "channels", 1, 2),
        ({"bits": 24}, "bits_per_sample", 16, 24),
        ({"audio_format": 3}, "audio_format", 1, 3),
        ({"riff": b"RIFX"}, "riff", "RIFF", "RIFX"),
        ({"wave_tag": b"AVI "}, "wave", "WAVE", "AVI "),
        ({"fmt_size": 12}, "fmt_size", 16, 12),
    ],
)
def test_format_violations(make_wav, kwargs, field, expected, actual) -> None:  # noqa: ANN001
    violation = validate_wav(make_wav(**kwargs))

    assert violation is not None
    assert violation.field == field
    assert violation.expected == expected
    assert violation.actual == actual


def test_missing_fmt_chunk(make_wav) -> None:  # noqa: ANN001
    violation = validate_wav(make_wav(fmt_tag=b"LIST"))

    assert violation is not None
    assert violation.field == "fmt_chunk"


def test_missing_file(tmp_path: Path) -> None:
    violation = validate_wav(tmp_path / "nope.wav")

    assert violation is not None
    assert violation.field == "file"


def test_file_too_small(tmp_path: Path) -> None:
    path = tmp_path / "tiny.wav"
    path.write_bytes(b"RIFF\x00\x00")

    violation = validate_wav(path)

    assert violation is not None
    assert violation.field == "size"
    assert violation.actual == 6


def test_quarantine_moves_file_to_failed_dir(make_wav) -> None:  # noqa: ANN001
    path = make_wav(sample_rate=8000)

    target = quarantine_wav(path)

    assert target == path.parent / "failed" / path.name
    assert target.exists()
    assert not path.exists()


def test_quarantine_keeps_existing_file(make_wav) -> None:  # noqa: ANN001
    first = quarantine_wav(make_wav())
    second = quarantine_wav(make_wav())

    assert first is not None and second is not None
    assert first != second
    assert first.exists() and second.exists()
    assert second.name.startswith("rec_") and second.suffix == ".wav"


def test_quarantine_missing_file_returns_none(tmp_path: Path) -> None:
    assert quarantine_wav(tmp_path / "gone.wav") is None
