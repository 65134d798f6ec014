from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from unittest.mock import patch

import pytest

import main
from config import JsonConfigStore
from models import SessionState


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def _store(tmp_path: Path) -> JsonConfigStore:
    store = JsonConfigStore(path=tmp_path / "config.json")
    store.set("data_root", str(tmp_path / "data"))
    store.set("model_path", str(tmp_path / "ggml-small.bin"))
    store.set("log_level", "debug")
    return store


def test_configure_logging_writes_rotating_file(tmp_path: Path, restore_logging) -> None:  # noqa: ANN001
    main.configure_logging(tmp_path / "logs", "WARNING")

    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root.handlers)
    assert (tmp_path / "logs" / "holdtalk.log").exists()


def test_app_wires_controller_from_config(tmp_path: Path, restore_logging) -> None:  # noqa: ANN001
    app = main.App(config_store=_store(tmp_path))

    assert app.controller.state == SessionState.IDLE
    assert app.hotkey.hotkey_name == "Key.alt_r"
    assert (tmp_path / "data" / "tmp").is_dir()
    assert (tmp_path / "data" / "logs" / "holdtalk.log").exists()
    assert logging.getLogger().level == logging.DEBUG


def test_main_reports_incomplete_config(tmp_path: Path, restore_logging, capsys) -> None:  # noqa: ANN001
    store = JsonConfigStore(path=tmp_path / "config.json")
    store.set("data_root", str(tmp_path / "data"))

    with patch("main.JsonConfigStore", return_value=store):
        assert main.main() == 2

    assert "model path" in capsys.readouterr().err


def test_run_reports_missing_hotkey_backend(tmp_path: Path, restore_logging, capsys, monkeypatch) -> None:  # noqa: ANN001
    import hotkey

    monkeypatch.setattr(hotkey, "keyboard", None)
    app = main.App(config_store=_store(tmp_path))

    assert app.run() == 1

    assert "Hotkey disabled: pynput is not installed" in capsys.readouterr().out
    assert app.controller.on_hotkey_down() is False
