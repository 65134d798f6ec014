from __future__ import annotations

from pathlib import Path

import pytest

from config import JsonConfigStore, ensure_data_root, history_dir, logs_dir, tmp_dir


def test_config_read_write(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    store = JsonConfigStore(path=path)

    assert store.get_hotkey() == "Key.alt_r"
    assert store.get_log_level() == "INFO"
    assert store.get_max_recording_s() == 120.0

    store.set_hotkey("Key.f9")
    store.set("model_path", "/models/ggml-base.bin")

    reloaded = JsonConfigStore(path=path)
    assert reloaded.get_hotkey() == "Key.f9"
    assert reloaded.get("model_path") == "/models/ggml-base.bin"


def test_config_invalid_json_fallback(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{invalid", encoding="utf-8")

    store = JsonConfigStore(path=path)
    assert store.get_hotkey() == "Key.alt_r"
    assert store.get("language") == "de"


def test_stt_config_from_store(tmp_path: Path) -> None:
    store = JsonConfigStore(path=tmp_path / "config.json")
    store.set("model_path", "/models/ggml-small.bin")
    store.set("language", "en")
    store.set("timeout_s", 15)

    stt = store.get_stt_config()

    assert stt.cli_path == "whisper-cli"
    assert stt.model_path == "/models/ggml-small.bin"
    assert stt.language == "en"
    assert stt.timeout_s == 15.0


def test_stt_config_requires_model_path(tmp_path: Path) -> None:
    store = JsonConfigStore(path=tmp_path / "config.json")

    with pytest.raises(ValueError, match="model path"):
        store.get_stt_config()


def test_recording_limit_can_be_disabled(tmp_path: Path) -> None:
    store = JsonConfigStore(path=tmp_path / "config.json")
    store.set("max_recording_s", 0)

    assert store.get_max_recording_s() is None


def test_data_root_layout(tmp_path: Path) -> None:
    store = JsonConfigStore(path=tmp_path / "config.json")
    store.set("data_root", str(tmp_path / "data"))
    root = store.get_data_root()

    ensure_data_root(root)

    assert root == tmp_path / "data"
    for directory in (tmp_dir(root), history_dir(root), logs_dir(root)):
        assert directory.is_dir()
