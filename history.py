"""Markdown history files for finished dictations.

Files land in ``<data_root>/history/YYYY/YYYY-MM/YYYY-MM-DD/`` and are named
``YYYYMMDD_HHMMSSfff_<slug>.md``. Each carries a small front-matter block
followed by a heading and the transcript.
"""

from __future__ import annotations

import logging
import re
import unicodedata
import uuid
from pathlib import Path

from models import HistoryEntry

logger = logging.getLogger(__name__)

DEFAULT_SLUG = "transcript"
MAX_DUPLICATES = 1000

_UMLAUTS = str.maketrans({"ä": "a", "ö": "o", "ü": "u", "Ä": "A", "Ö": "O", "Ü": "U", "ß": "ss"})


def slugify(text: str, max_length: int = 50) -> str:
    if not text or not text.strip():
        return DEFAULT_SLUG

    value = text.translate(_UMLAUTS)
    value = unicodedata.normalize("NFKD", value)
    value = "".join(ch for ch in value if not unicodedata.combining(ch))
    value = value.lower()
    value = re.sub(r"[\s_]+", "-", value)
    value = re.sub(r"[^a-z0-9\-]", "", value)
    value = re.sub(r"-+", "-", value).strip("-")
    if not value:
        return DEFAULT_SLUG

    if len(value) > max_length:
        cut = value[:max_length]
        boundary = cut.rfind("-")
        # Only break at a word boundary if that keeps a reasonable prefix.
        if boundary > max_length // 2:
            cut = cut[:boundary]
        value = cut.strip("-")
    return value or DEFAULT_SLUG


def relative_directory(entry: HistoryEntry) -> Path:
    local = entry.created.astimezone()
    return Path("history") / local.strftime("%Y") / local.strftime("%Y-%m") / local.strftime("%Y-%m-%d")


def file_name(entry: HistoryEntry, slug: str) -> str:
    local = entry.created.astimezone()
    stamp = local.strftime("%Y%m%d_%H%M%S") + f"{local.microsecond // 1000:03d}"
    return f"{stamp}_{slug}.md"


def to_markdown(entry: HistoryEntry) -> str:
    local = entry.created.astimezone()
    lines = [
        "---",
        f"created: {local.isoformat(timespec='seconds')}",
        f"lang: {entry.language}",
        f"stt_model: {entry.stt_model}",
        f"duration_sec: {entry.duration_s:.1f}",
        f"post_processed: {'true' if entry.post_processed else 'false'}",
        "---",
        "",
        f"# Dictation - {local.strftime('%d.%m.%Y %H:%M')}",
        "",
        entry.text,
        "",
    ]
    return "\n".join(lines)


def _unique_path(path: Path) -> Path:
    if not path.exists():
        return path
    for counter in range(2, MAX_DUPLICATES):
        candidate = path.with_name(f"{path.stem}_{counter}{path.suffix}")
        if not candidate.exists():
            return candidate
    return path.with_name(f"{path.stem}_{uuid.uuid4().hex}{path.suffix}")


class HistoryWriter:
    def write(self, entry: HistoryEntry, data_root: Path) -> Path:
        slug = slugify(entry.text)
        directory = data_root / relative_directory(entry)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path = _unique_path(directory / file_name(entry, slug))
            path.write_text(to_markdown(entry), encoding="utf-8")
        except OSError:
            preview = entry.text if len(entry.text) <= 50 else entry.text[:50] + "..."
            logger.exception("Failed to write history file under %s (%r)", data_root, preview)
            raise
        logger.info("History file created: %s", path)
        return path
