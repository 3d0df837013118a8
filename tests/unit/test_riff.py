"""Unit tests for the RIFF chunk cursor."""

import io
import struct

import pytest
from wavfixtures import BrokenStream, NonSeekableStream, chunk

from riffwav.errors import MalformedDataError, WavIOError
from riffwav.riff import ChunkCursor


class TestReadHeader:
    """Tests for ChunkCursor.read_header."""

    def test_reads_tag_and_size(self) -> None:
        cursor = ChunkCursor(io.BytesIO(b"LIST" + struct.pack("<I", 26)))
        assert cursor.read_header() == (b"LIST", 26)

    def test_truncated_header_is_malformed(self) -> None:
        cursor = ChunkCursor(io.BytesIO(b"LIST\x1a\x00"))
        with pytest.raises(MalformedDataError, match="chunk header"):
            cursor.read_header()

    def test_empty_stream_is_malformed(self) -> None:
        with pytest.raises(MalformedDataError):
            ChunkCursor(io.BytesIO()).read_header()

    def test_stream_error_is_wrapped(self) -> None:
        with pytest.raises(WavIOError) as exc_info:
            ChunkCursor(BrokenStream(b"RIFF")).read_header()

        assert isinstance(exc_info.value.error, OSError)
        assert exc_info.value.__cause__ is exc_info.value.error


class TestRead:
    """Tests for exact reads."""

    def test_short_read_is_malformed(self) -> None:
        cursor = ChunkCursor(io.BytesIO(b"abc"))
        with pytest.raises(MalformedDataError, match="wanted 4 bytes, got 3"):
            cursor.read(4)

    def test_read_payload_consumes_pad_byte(self) -> None:
        stream = io.BytesIO(b"abc\x00next")
        cursor = ChunkCursor(stream)

        assert cursor.read_payload(3) == b"abc"
        assert stream.read() == b"next"

    def test_read_payload_tolerates_missing_final_pad(self) -> None:
        cursor = ChunkCursor(io.BytesIO(b"abc"))
        assert cursor.read_payload(3) == b"abc"


class TestSkip:
    """Tests for skipping chunk payloads."""

    @pytest.mark.parametrize("size", [0, 1, 4, 7])
    def test_skip_lands_on_next_chunk(self, size: int) -> None:
        payload = bytes(range(size))
        stream = io.BytesIO(chunk(b"junk", payload) + chunk(b"next", b"xy"))
        cursor = ChunkCursor(stream)

        tag, chunk_size = cursor.read_header()
        cursor.skip(chunk_size)

        assert tag == b"junk"
        assert cursor.read_header() == (b"next", 2)

    def test_skip_without_seeking(self) -> None:
        data = chunk(b"junk", b"x" * 70_001) + chunk(b"next", b"")
        cursor = ChunkCursor(NonSeekableStream(data))

        _, size = cursor.read_header()
        cursor.skip(size)

        assert cursor.read_header() == (b"next", 0)

    def test_skip_past_end_is_malformed(self) -> None:
        cursor = ChunkCursor(io.BytesIO(b"JUNK" + struct.pack("<I", 100) + b"short"))
        _, size = cursor.read_header()

        with pytest.raises(MalformedDataError, match="past the end"):
            cursor.skip(size)

    def test_oversized_read_is_malformed(self) -> None:
        cursor = ChunkCursor(io.BytesIO(b"fmt " + struct.pack("<I", 0xFFFFFFF0) + b"short"))
        _, size = cursor.read_header()

        with pytest.raises(MalformedDataError, match="got 5"):
            cursor.read(size)

    def test_oversized_read_without_seeking_is_malformed(self) -> None:
        stream = NonSeekableStream(b"fmt " + struct.pack("<I", 0xFFFFFFF0) + b"x" * 70_000)
        cursor = ChunkCursor(stream)
        _, size = cursor.read_header()

        with pytest.raises(MalformedDataError, match="got 70000"):
            cursor.read(size)

    def test_skip_past_end_without_seeking_is_malformed(self) -> None:
        cursor = ChunkCursor(NonSeekableStream(b"JUNK" + struct.pack("<I", 100) + b"short"))
        _, size = cursor.read_header()

        with pytest.raises(MalformedDataError, match="past the end"):
            cursor.skip(size)


class TestWrite:
    """Tests for writing and patching headers."""

    def test_write_header(self) -> None:
        stream = io.BytesIO()
        ChunkCursor(stream).write_header(b"data", 1234)
        assert stream.getvalue() == b"data\xd2\x04\x00\x00"

    def test_write_header_rejects_bad_tag(self) -> None:
        with pytest.raises(ValueError, match="4 bytes"):
            ChunkCursor(io.BytesIO()).write_header(b"dat", 0)

    def test_write_header_rejects_oversized_chunk(self) -> None:
        with pytest.raises(ValueError, match="32 bits"):
            ChunkCursor(io.BytesIO()).write_header(b"data", 1 << 32)

    def test_seek_and_patch_keeps_position(self) -> None:
        stream = io.BytesIO()
        cursor = ChunkCursor(stream)
        cursor.write_header(b"RIFF", 0)
        cursor.write(b"payload")

        cursor.seek_and_patch(4, 0xDEADBEEF)

        assert cursor.tell() == 15
        assert stream.getvalue() == b"RIFF\xef\xbe\xad\xdepayload"
