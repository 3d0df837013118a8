"""Helpers for building WAV streams byte by byte."""

import io
import struct
from collections.abc import Sequence


def pcm_fmt(
    channels: int = 1,
    sample_rate: int = 44100,
    bits_per_sample: int = 16,
    *,
    audio_format: int = 1,
    byte_rate: int | None = None,
    block_align: int | None = None,
) -> bytes:
    """Pack a 16-byte fmt chunk payload, optionally with inconsistent fields."""
    bytes_per_sample = (bits_per_sample + 7) // 8
    if block_align is None:
        block_align = channels * bytes_per_sample
    if byte_rate is None:
        byte_rate = sample_rate * block_align
    return struct.pack(
        "<HHIIHH", audio_format, channels, sample_rate, byte_rate, block_align, bits_per_sample
    )


def chunk(tag: bytes, payload: bytes, *, size: int | None = None) -> bytes:
    """Serialize one chunk, with a pad byte after odd payloads."""
    size = len(payload) if size is None else size
    pad = b"\x00" if len(payload) % 2 else b""
    return tag + struct.pack("<I", size) + payload + pad


def riff(chunks: Sequence[bytes], *, riff_tag: bytes = b"RIFF", form: bytes = b"WAVE") -> bytes:
    """Wrap chunks in a RIFF header."""
    body = form + b"".join(chunks)
    return riff_tag + struct.pack("<I", len(body)) + body


class NonSeekableStream(io.RawIOBase):
    """Readable stream that cannot seek or tell, like a pipe."""

    def __init__(self, data: bytes) -> None:
        self._buffer = io.BytesIO(data)

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:  # type: ignore[no-untyped-def]
        return self._buffer.readinto(b)


class FailingStream(io.BytesIO):
    """Seekable stream whose writes fail after a number of successful calls."""

    def __init__(self, fail_after: int) -> None:
        super().__init__()
        self.writes = 0
        self.fail_after = fail_after

    def write(self, b) -> int:  # type: ignore[no-untyped-def, override]
        if self.writes >= self.fail_after:
            raise OSError("No space left on device")
        self.writes += 1
        return super().write(b)


class BrokenStream(io.BytesIO):
    """Stream whose reads fail once the position reaches ``fail_at``."""

    def __init__(self, data: bytes = b"", fail_at: int = 0) -> None:
        super().__init__(data)
        self.fail_at = fail_at

    def read(self, size=-1):  # type: ignore[no-untyped-def, override]
        if self.tell() >= self.fail_at:
            raise OSError("Input/output error")
        return super().read(size)
