"""RIFF chunk utilities.

This module provides a cursor for reading and writing RIFF chunk headers
(FourCC + little-endian u32 size) over a binary stream, and for patching
size fields that are only known once writing has finished.
"""

import logging
import struct
from typing import BinaryIO

from riffwav.errors import MalformedDataError, WavIOError

logger = logging.getLogger(__name__)

# FourCC identifiers
RIFF_ID = b"RIFF"
WAVE_ID = b"WAVE"
FMT_ID = b"fmt "
DATA_ID = b"data"

# Audio format codes
WAVE_FORMAT_PCM = 1
WAVE_FORMAT_EXTENSIBLE = 0xFFFE

# Largest value a RIFF size field can hold
MAX_CHUNK_SIZE = 0xFFFFFFFF

# Upper bound on a single stream.read() call
_BLOCK_SIZE = 64 * 1024


class ChunkCursor:
    """Sequential reader/writer of RIFF chunks over a binary stream.

    Nothing is buffered beyond what the caller explicitly reads. Errors
    raised by the stream are re-raised as ``WavIOError``.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream

    def read(self, size: int) -> bytes:
        """Read exactly ``size`` bytes.

        Raises:
            MalformedDataError: If the stream ends first.
        """
        # Sizes come from the file; check them before reading
        if size > _BLOCK_SIZE and self._seekable():
            available = self._bytes_left()
            if available < size:
                raise MalformedDataError(
                    f"unexpected end of stream: wanted {size} bytes, got {available}"
                )

        data = self._read_up_to(size)
        if len(data) < size:
            raise MalformedDataError(
                f"unexpected end of stream: wanted {size} bytes, got {len(data)}"
            )
        return data

    def read_payload(self, size: int) -> bytes:
        """Read a whole chunk payload and consume its pad byte, if any.

        A pad byte missing at the very end of the stream is tolerated.
        """
        data = self.read(size)
        if size % 2:
            self._read_up_to(1)
        return data

    def read_tag(self) -> bytes:
        """Read a bare FourCC, such as the RIFF form type."""
        return self.read(4)

    def read_header(self) -> tuple[bytes, int]:
        """Read a RIFF chunk header (FourCC + size).

        Returns:
            Tuple of (chunk_id, chunk_size).

        Raises:
            MalformedDataError: If 8 full bytes cannot be read.
        """
        header = self._read_up_to(8)
        if len(header) < 8:
            raise MalformedDataError("unexpected end of stream reading chunk header")

        chunk_id = header[:4]
        chunk_size = struct.unpack("<I", header[4:8])[0]
        return chunk_id, chunk_size

    def skip(self, size: int) -> None:
        """Advance past a chunk payload of ``size`` bytes and its pad byte."""
        # Word alignment padding
        remaining = size + (size % 2)

        if self._seekable():
            if self._bytes_left() < remaining:
                raise MalformedDataError(
                    f"chunk of {size} bytes extends past the end of the stream"
                )
            self._io(self.stream.seek, remaining, 1)
            return

        while remaining:
            block = self._read_up_to(min(remaining, _BLOCK_SIZE))
            if not block:
                raise MalformedDataError(
                    f"chunk of {size} bytes extends past the end of the stream"
                )
            remaining -= len(block)

    def write(self, data: bytes) -> None:
        """Write ``data`` in full."""
        self._io(self.stream.write, data)

    def write_header(self, tag: bytes, size: int) -> None:
        """Write a RIFF chunk header."""
        if len(tag) != 4:
            raise ValueError(f"chunk id must be 4 bytes, got {tag!r}")
        if not 0 <= size <= MAX_CHUNK_SIZE:
            raise ValueError(f"chunk size {size} does not fit in 32 bits")
        self.write(tag + struct.pack("<I", size))

    def seek_and_patch(self, offset: int, value: int) -> None:
        """Overwrite the u32 at absolute ``offset``, keeping the current position."""
        if not 0 <= value <= MAX_CHUNK_SIZE:
            raise ValueError(f"size field {value} does not fit in 32 bits")

        position = self.tell()
        self._io(self.stream.seek, offset)
        self.write(struct.pack("<I", value))
        self._io(self.stream.seek, position)
        logger.debug("Patched size field at offset %d to %d", offset, value)

    def tell(self) -> int:
        return self._io(self.stream.tell)

    def flush(self) -> None:
        self._io(self.stream.flush)

    def _read_up_to(self, size: int) -> bytes:
        # Raw streams may return short reads before end of stream
        chunks = []
        remaining = size
        while remaining > 0:
            data = self._io(self.stream.read, min(remaining, _BLOCK_SIZE))
            if not data:
                break
            chunks.append(data)
            remaining -= len(data)
        return b"".join(chunks)

    def _bytes_left(self) -> int:
        position = self.tell()
        end = self._io(self.stream.seek, 0, 2)
        self._io(self.stream.seek, position)
        return end - position

    def _seekable(self) -> bool:
        seekable = getattr(self.stream, "seekable", None)
        return bool(seekable is not None and seekable())

    @staticmethod
    def _io(method, *args):
        try:
            return method(*args)
        except OSError as e:
            raise WavIOError(e) from e
