from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from wav_fixtures import build_wav_bytes

WavFactory = Callable[..., Path]


@pytest.fixture
def make_wav(tmp_path: Path) -> WavFactory:
    def _make(name: str = "rec.wav", **kwargs) -> Path:  # noqa: ANN003
        path = tmp_path / name
        path.write_bytes(build_wav_bytes(**kwargs))
        return path

    return _make
