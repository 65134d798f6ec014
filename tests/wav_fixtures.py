"""Builders for hand-made WAV headers."""

from __future__ import annotations

import struct


def build_wav_bytes(
    *,
    riff: bytes = b"RIFF",
    wave_tag: bytes = b"WAVE",
    fmt_tag: bytes = b"fmt ",
    fmt_size: int = 16,
    audio_format: int = 1,
    channels: int = 1,
    sample_rate: int = 16000,
    bits: int = 16,
    junk: bool = False,
    data: bytes = b"\x00\x00" * 160,
) -> bytes:
    block_align = channels * bits // 8
    byte_rate = sample_rate * block_align
    fmt_body = struct.pack("<HHIIHH", audio_format, channels, sample_rate, byte_rate, block_align, bits)
    fmt_chunk = fmt_tag + struct.pack("<I", fmt_size) + fmt_body
    data_chunk = b"data" + struct.pack("<I", len(data)) + data
    junk_chunk = b"JUNK" + struct.pack("<I", 4) + b"\x00" * 4 if junk else b""
    body = wave_tag + junk_chunk + fmt_chunk + data_chunk
    return riff + struct.pack("<I", len(body)) + body
