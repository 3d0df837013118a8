"""WAV stream reader.

This module locates and validates the ``fmt `` and ``data`` chunks of a
RIFF/WAVE stream and decodes the samples lazily, one sample per pull.
"""

import logging
from collections.abc import Iterator
from pathlib import Path
from types import TracebackType
from typing import Any, BinaryIO

import numpy as np
from numpy.typing import DTypeLike, NDArray

from riffwav.codec import check_sample_type, codec_for
from riffwav.errors import MalformedDataError, WavError, WavIOError
from riffwav.riff import DATA_ID, FMT_ID, RIFF_ID, WAVE_ID, ChunkCursor
from riffwav.types import EXTENSIBLE_FMT_CHUNK_SIZE, WavSpec

logger = logging.getLogger(__name__)


class WavReader:
    """Reads integer PCM samples from a WAV stream.

    The header is parsed on construction, so every format error surfaces
    before any sample is decoded. Samples are then read from the stream on
    demand; the reader keeps a single position, so the data can be read
    only once per reader.

    Example:
        >>> with WavReader.open("input.wav") as reader:  # doctest: +SKIP
        ...     peak = max(abs(s) for s in reader.samples(np.int16))
    """

    def __init__(self, stream: BinaryIO, *, strict: bool = False) -> None:
        """Parse the WAV header from ``stream``.

        Args:
            stream: Binary stream positioned at the ``RIFF`` tag. It does not
                need to be seekable.
            strict: Whether inconsistent ``fmt `` fields are fatal.

        Raises:
            MalformedDataError: If the RIFF structure is invalid.
            UnsupportedError: If the audio format is not integer PCM.
            WavIOError: If the stream fails.
        """
        self._stream = stream
        self._owns_stream = False
        self._cursor = ChunkCursor(stream)
        self._spec, self._data_size = self._read_header(strict)
        self._codec = codec_for(self._spec.bits_per_sample)

        # A trailing partial frame is never decoded
        frames = self._data_size // self._spec.block_align
        self._num_samples = frames * self._spec.channels
        self._samples_read = 0

        logger.debug(
            "Opened WAV stream: %s, %d data bytes, %d samples",
            self._spec,
            self._data_size,
            self._num_samples,
        )

    @classmethod
    def open(cls, source: BinaryIO | Path | str, *, strict: bool = False) -> "WavReader":
        """Open a reader over a stream or a file path.

        A file opened from a path is owned by the reader and closed by
        ``close()``.
        """
        if not isinstance(source, (str, Path)):
            return cls(source, strict=strict)

        try:
            f = open(source, "rb")
        except OSError as e:
            raise WavIOError(e) from e

        try:
            reader = cls(f, strict=strict)
        except WavError:
            f.close()
            raise
        reader._owns_stream = True
        return reader

    def _read_header(self, strict: bool) -> tuple[WavSpec, int]:
        cursor = self._cursor

        # The RIFF size is advisory
        tag, _ = cursor.read_header()
        if tag != RIFF_ID:
            raise MalformedDataError("no RIFF tag found")
        if cursor.read_tag() != WAVE_ID:
            raise MalformedDataError("no WAVE tag found")

        spec: WavSpec | None = None
        while True:
            try:
                chunk_id, chunk_size = cursor.read_header()
            except MalformedDataError as e:
                missing = "fmt" if spec is None else "data"
                raise MalformedDataError(f"no {missing} chunk found") from e

            if chunk_id == FMT_ID:
                if spec is not None:
                    raise MalformedDataError("duplicate fmt chunk")
                spec = WavSpec.from_fmt_chunk(self._read_fmt_payload(chunk_size), strict=strict)
            elif chunk_id == DATA_ID:
                if spec is None:
                    raise MalformedDataError("data chunk found before fmt chunk")
                return spec, chunk_size
            else:
                logger.debug("Skipping %r chunk (%d bytes)", chunk_id, chunk_size)
                cursor.skip(chunk_size)

    def _read_fmt_payload(self, chunk_size: int) -> bytes:
        if chunk_size <= EXTENSIBLE_FMT_CHUNK_SIZE:
            return self._cursor.read_payload(chunk_size)

        # Extension bytes past the sub-format GUID are never parsed
        payload = self._cursor.read(EXTENSIBLE_FMT_CHUNK_SIZE)
        self._cursor.skip(chunk_size - EXTENSIBLE_FMT_CHUNK_SIZE)
        return payload

    @property
    def spec(self) -> WavSpec:
        """Format of the audio data."""
        return self._spec

    @property
    def duration(self) -> int:
        """Number of frames (samples per channel) in the data chunk."""
        return self._num_samples // self._spec.channels

    def __len__(self) -> int:
        """Total number of samples in the data chunk, across all channels."""
        return self._num_samples

    def samples(self, dtype: DTypeLike = np.int32) -> "WavSamples":
        """Iterate over the remaining samples, interleaved by channel.

        Args:
            dtype: Signed numpy integer type of the yielded samples. It must be
                at least ``bits_per_sample`` wide; otherwise the first pull
                raises ``TooWideError`` and the iterator stops there, so the
                error is raised once rather than for every sample. No sample
                is consumed, so a wider type can still read the data.

        Returns:
            A single-pass iterator. It continues from wherever a previous
            iterator or ``read_array`` call stopped. Any error ends it.

        Raises:
            TypeError: If ``dtype`` is not a signed integer type.
        """
        dt = np.dtype(dtype)
        if dt.kind != "i":
            raise TypeError(f"sample type must be a signed integer type, got {dt}")
        return WavSamples(self, dt)

    def read_array(self, dtype: DTypeLike = np.int32) -> NDArray[Any]:
        """Read all remaining samples at once.

        Args:
            dtype: Signed numpy integer type of the result.

        Returns:
            Array of shape (frames, channels).

        Raises:
            TooWideError: If ``dtype`` cannot hold ``bits_per_sample`` bits.
            MalformedDataError: If the stream ends before the declared data size.
            ValueError: If a previous ``samples()`` pull stopped mid-frame.
        """
        dt = check_sample_type(dtype, self._spec.bits_per_sample)
        if self._samples_read % self._spec.channels:
            raise ValueError("reader is positioned in the middle of a frame")

        remaining = self._num_samples - self._samples_read
        raw = self._cursor.read(remaining * self._spec.bytes_per_sample)
        self._samples_read = self._num_samples

        values = self._codec.decode_block(raw).astype(dt)
        return values.reshape(-1, self._spec.channels)

    def _has_samples(self) -> bool:
        return self._samples_read < self._num_samples

    def _read_sample(self) -> int:
        raw = self._cursor.read(self._spec.bytes_per_sample)
        self._samples_read += 1
        return self._codec.decode(raw)

    def close(self) -> None:
        """Close the underlying file if the reader opened it."""
        if self._owns_stream:
            self._stream.close()

    def __enter__(self) -> "WavReader":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class WavSamples(Iterator[Any]):
    """Lazy iterator over the samples of a ``WavReader``.

    Any error is raised from the pull that hit it; the iterator is exhausted
    afterwards.
    """

    def __init__(self, reader: WavReader, dtype: np.dtype[Any]) -> None:
        self._reader = reader
        self._dtype = dtype
        self._done = False

    def __iter__(self) -> "WavSamples":
        return self

    def __next__(self) -> Any:
        if self._done or not self._reader._has_samples():
            self._done = True
            raise StopIteration

        # Stays set if decoding raises
        self._done = True
        check_sample_type(self._dtype, self._reader.spec.bits_per_sample)
        value = self._reader._read_sample()
        self._done = False
        return self._dtype.type(value)

    def __len__(self) -> int:
        """Number of samples still to be yielded."""
        if self._done:
            return 0
        return self._reader._num_samples - self._reader._samples_read
