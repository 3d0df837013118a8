"""WAV stream writer.

The writer emits a provisional 44-byte header as soon as it is created and
then appends samples as they arrive. The RIFF and ``data`` size fields can
only be known once the caller stops writing, so ``finalize()`` seeks back
and patches them.

A writer that is discarded without ``finalize()`` leaves a header that
describes an empty file (``data`` size 0, RIFF size 36) followed by the
sample bytes. That is a misuse by the caller, not a codec defect: the file
is structurally valid but its samples are unreachable.
"""

import logging
from collections.abc import Iterable
from pathlib import Path
from types import TracebackType
from typing import BinaryIO

from numpy.typing import ArrayLike

from riffwav.codec import codec_for
from riffwav.errors import UnsupportedError, WavError, WavIOError
from riffwav.riff import DATA_ID, FMT_ID, MAX_CHUNK_SIZE, RIFF_ID, WAVE_ID, ChunkCursor
from riffwav.types import WavSpec

logger = logging.getLogger(__name__)

HEADER_SIZE = 44

# Offsets of the patched size fields, relative to the start of the header
RIFF_SIZE_OFFSET = 4
DATA_SIZE_OFFSET = 40


def riff_size(data_bytes: int) -> int:
    """RIFF chunk size for a PCM file holding ``data_bytes`` of samples.

    4 (WAVE) + 8+16 (fmt chunk) + 8+data_bytes (data chunk) + pad byte.
    """
    return 4 + 8 + 16 + 8 + data_bytes + (data_bytes % 2)


class WavWriter:
    """Writes integer PCM samples to a seekable stream.

    Example:
        >>> spec = WavSpec(channels=1, sample_rate=44100, bits_per_sample=16)
        >>> with WavWriter.create("sine.wav", spec) as writer:  # doctest: +SKIP
        ...     for t in range(44100):
        ...         writer.write_sample(int(32767 * math.sin(2 * math.pi * 440 * t / 44100)))
    """

    def __init__(self, stream: BinaryIO, spec: WavSpec) -> None:
        """Write the provisional header to ``stream``.

        The header starts at the stream's current position.

        Raises:
            ValueError: If the stream cannot seek.
            WavIOError: If the stream fails.
        """
        seekable = getattr(stream, "seekable", None)
        if seekable is None or not seekable():
            raise ValueError("WavWriter needs a seekable stream to patch the header")

        self._stream = stream
        self._owns_stream = False
        self._spec = spec
        self._codec = codec_for(spec.bits_per_sample)
        self._cursor = ChunkCursor(stream)
        self._samples_written = 0
        self._data_bytes_written = 0
        self._finalized = False

        self._start = self._cursor.tell()
        self._write_header()

    @classmethod
    def create(cls, target: BinaryIO | Path | str, spec: WavSpec) -> "WavWriter":
        """Create a writer over a stream or a file path.

        A file opened from a path is owned by the writer and closed by
        ``finalize()``.
        """
        if not isinstance(target, (str, Path)):
            return cls(target, spec)

        try:
            f = open(target, "wb")
        except OSError as e:
            raise WavIOError(e) from e

        try:
            writer = cls(f, spec)
        except WavError:
            f.close()
            raise
        writer._owns_stream = True
        return writer

    def _write_header(self) -> None:
        fmt_chunk = self._spec.to_fmt_chunk()

        self._cursor.write_header(RIFF_ID, riff_size(0))
        self._cursor.write(WAVE_ID)
        self._cursor.write_header(FMT_ID, len(fmt_chunk))
        self._cursor.write(fmt_chunk)
        # Placeholder, patched by finalize()
        self._cursor.write_header(DATA_ID, 0)

    @property
    def spec(self) -> WavSpec:
        return self._spec

    @property
    def samples_written(self) -> int:
        return self._samples_written

    @property
    def data_bytes_written(self) -> int:
        return self._data_bytes_written

    @property
    def duration(self) -> int:
        """Number of whole frames written so far."""
        return self._samples_written // self._spec.channels

    @property
    def finalized(self) -> bool:
        return self._finalized

    def write_sample(self, value: int) -> None:
        """Append one sample.

        Channels are interleaved: write one sample per channel for each frame.

        Raises:
            ValueError: If ``value`` does not fit the bit depth.
            WavIOError: If the stream fails. The counters then still match
                the samples that were written before.
            WavError: If the writer was already finalized.
        """
        self._check_active()
        self._append(self._codec.encode(value), 1)

    def write_samples(self, values: ArrayLike | Iterable[int]) -> None:
        """Append many samples, interleaved by channel.

        Accepts any iterable of integers or an integer numpy array (a 2D array
        of shape (frames, channels) is written in row order).
        """
        self._check_active()
        data = self._codec.encode_block(values)
        self._append(data, len(data) // self._spec.bytes_per_sample)

    def _append(self, data: bytes, count: int) -> None:
        if riff_size(self._data_bytes_written + len(data)) > MAX_CHUNK_SIZE:
            raise UnsupportedError("WAV data cannot exceed the 4 GiB RIFF size limit")

        self._cursor.write(data)
        self._samples_written += count
        self._data_bytes_written += len(data)

    def _check_active(self) -> None:
        if self._finalized:
            raise WavError("writer has already been finalized")

    def finalize(self) -> None:
        """Pad the data chunk, patch the size fields and flush.

        Must be called before the stream is closed. It can be called only
        once, even if it fails.

        Raises:
            WavIOError: If the stream fails.
            WavError: If the writer was already finalized.
        """
        self._check_active()
        self._finalized = True

        data_bytes = self._data_bytes_written
        try:
            if data_bytes % 2:
                self._cursor.write(b"\x00")
            self._cursor.seek_and_patch(self._start + RIFF_SIZE_OFFSET, riff_size(data_bytes))
            self._cursor.seek_and_patch(self._start + DATA_SIZE_OFFSET, data_bytes)
            self._cursor.flush()
        finally:
            if self._owns_stream:
                self._stream.close()

        logger.debug(
            "Finalized WAV stream: %d samples, %d data bytes",
            self._samples_written,
            data_bytes,
        )

    def __enter__(self) -> "WavWriter":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._finalized:
            return
        if exc_type is None:
            self.finalize()
        elif self._owns_stream:
            # Leave the header unpatched; the caller sees the original error
            self._stream.close()
