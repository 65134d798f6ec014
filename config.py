"""JSON-based config store and data-root layout."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from models import SttInvocationConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "holdtalk" / "config.json"
DEFAULT_DATA_ROOT = Path.home() / ".local" / "share" / "holdtalk"

DEFAULTS: dict[str, Any] = {
    "hotkey": "Key.alt_r",
    "cli_path": "whisper-cli",
    "model_path": "",
    "language": "de",
    "timeout_s": 60,
    "data_root": str(DEFAULT_DATA_ROOT),
    "max_recording_s": 120,
    "log_level": "INFO",
}


def tmp_dir(data_root: Path) -> Path:
    return data_root / "tmp"


def history_dir(data_root: Path) -> Path:
    return data_root / "history"


def logs_dir(data_root: Path) -> Path:
    return data_root / "logs"


def ensure_data_root(data_root: Path) -> None:
    for directory in (data_root, tmp_dir(data_root), history_dir(data_root), logs_dir(data_root)):
        directory.mkdir(parents=True, exist_ok=True)


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or DEFAULT_CONFIG_PATH
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Any:
        return self._read_all().get(key, DEFAULTS.get(key))

    def set(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def get_hotkey(self) -> str:
        return str(self.get("hotkey"))

    def set_hotkey(self, hotkey: str) -> None:
        self.set("hotkey", hotkey)

    def get_data_root(self) -> Path:
        return Path(str(self.get("data_root"))).expanduser()

    def get_log_level(self) -> str:
        return str(self.get("log_level")).upper()

    def get_max_recording_s(self) -> float | None:
        value = self.get("max_recording_s")
        if not value:
            return None
        return float(value)

    def get_stt_config(self) -> SttInvocationConfig:
        """Build the STT settings; raises ``ValueError`` if they are incomplete."""
        return SttInvocationConfig(
            cli_path=str(self.get("cli_path")),
            model_path=str(self.get("model_path")),
            language=str(self.get("language")),
            timeout_s=float(self.get("timeout_s")),
        )

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
