"""PCM sample encoding and decoding.

Samples are stored little-endian in the smallest whole number of bytes that
holds ``bits_per_sample``:

    bits   bytes  representation
    1-8    1      unsigned, biased by 128
    9-16   2      signed two's complement
    17-24  3      signed two's complement
    25-32  4      signed two's complement

Each container width has its own codec pair (single-sample and numpy block
variants). The codec is picked once per session from the format's bit depth.
"""

import struct
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, DTypeLike, NDArray

from riffwav.errors import TooWideError, UnsupportedError

MIN_BITS_PER_SAMPLE = 1
MAX_BITS_PER_SAMPLE = 32


def _decode_8bit(raw: bytes) -> int:
    return raw[0] - 128


def _encode_8bit(value: int) -> bytes:
    return bytes((value + 128,))


def _decode_16bit(raw: bytes) -> int:
    return struct.unpack("<h", raw)[0]


def _encode_16bit(value: int) -> bytes:
    return struct.pack("<h", value)


def _decode_24bit(raw: bytes) -> int:
    value = raw[0] | (raw[1] << 8) | (raw[2] << 16)
    if value & 0x800000:  # Sign extend
        value -= 0x1000000
    return value


def _encode_24bit(value: int) -> bytes:
    return struct.pack("<i", value)[:3]


def _decode_32bit(raw: bytes) -> int:
    return struct.unpack("<i", raw)[0]


def _encode_32bit(value: int) -> bytes:
    return struct.pack("<i", value)


def _decode_8bit_block(raw: bytes) -> NDArray[np.int32]:
    return np.frombuffer(raw, dtype=np.uint8).astype(np.int32) - 128


def _encode_8bit_block(values: NDArray[Any]) -> bytes:
    return (values + 128).astype(np.uint8).tobytes()


def _decode_16bit_block(raw: bytes) -> NDArray[np.int32]:
    return np.frombuffer(raw, dtype="<i2").astype(np.int32)


def _encode_16bit_block(values: NDArray[Any]) -> bytes:
    return values.astype("<i2").tobytes()


def _decode_24bit_block(raw: bytes) -> NDArray[np.int32]:
    b = np.frombuffer(raw, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
    values = b[:, 0] | (b[:, 1] << 8) | (b[:, 2] << 16)
    return np.where(values & 0x800000, values - 0x1000000, values).astype(np.int32)


def _encode_24bit_block(values: NDArray[Any]) -> bytes:
    # Drop the high byte of each little-endian int32
    words = values.astype("<i4").view(np.uint8).reshape(-1, 4)
    return words[:, :3].tobytes()


def _decode_32bit_block(raw: bytes) -> NDArray[np.int32]:
    return np.frombuffer(raw, dtype="<i4").astype(np.int32)


def _encode_32bit_block(values: NDArray[Any]) -> bytes:
    return values.astype("<i4").tobytes()


_Codecs = tuple[
    Callable[[bytes], int],
    Callable[[int], bytes],
    Callable[[bytes], NDArray[np.int32]],
    Callable[[NDArray[Any]], bytes],
]

# Container width in bytes -> (decode, encode, decode_block, encode_block)
_CODECS: dict[int, _Codecs] = {
    1: (_decode_8bit, _encode_8bit, _decode_8bit_block, _encode_8bit_block),
    2: (_decode_16bit, _encode_16bit, _decode_16bit_block, _encode_16bit_block),
    3: (_decode_24bit, _encode_24bit, _decode_24bit_block, _encode_24bit_block),
    4: (_decode_32bit, _encode_32bit, _decode_32bit_block, _encode_32bit_block),
}


@dataclass(frozen=True)
class SampleCodec:
    """Maps integer samples to and from their on-disk bytes for one bit depth."""

    bits_per_sample: int

    def __post_init__(self) -> None:
        if not MIN_BITS_PER_SAMPLE <= self.bits_per_sample <= MAX_BITS_PER_SAMPLE:
            raise UnsupportedError(
                f"Unsupported bit depth: {self.bits_per_sample}. "
                f"Use {MIN_BITS_PER_SAMPLE}-{MAX_BITS_PER_SAMPLE} bits."
            )

    @property
    def bytes_per_sample(self) -> int:
        return (self.bits_per_sample + 7) // 8

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits_per_sample - 1))

    @property
    def max_value(self) -> int:
        return (1 << (self.bits_per_sample - 1)) - 1

    def decode(self, raw: bytes) -> int:
        """Decode one sample from exactly ``bytes_per_sample`` bytes."""
        if len(raw) != self.bytes_per_sample:
            raise ValueError(f"expected {self.bytes_per_sample} bytes, got {len(raw)}")
        return _CODECS[self.bytes_per_sample][0](raw)

    def encode(self, value: int) -> bytes:
        """Encode one sample.

        Raises:
            TypeError: If ``value`` is not an integer.
            ValueError: If ``value`` is outside the range of the bit depth.
        """
        if not isinstance(value, (int, np.integer)) or isinstance(value, bool):
            raise TypeError(f"samples must be integers, got {type(value).__name__}")
        value = int(value)
        if not self.min_value <= value <= self.max_value:
            raise ValueError(
                f"sample {value} out of range for {self.bits_per_sample}-bit audio "
                f"[{self.min_value}, {self.max_value}]"
            )
        return _CODECS[self.bytes_per_sample][1](value)

    def decode_block(self, raw: bytes) -> NDArray[np.int32]:
        """Decode a run of whole samples into an int32 array."""
        if len(raw) % self.bytes_per_sample:
            raise ValueError(
                f"{len(raw)} bytes is not a whole number of "
                f"{self.bytes_per_sample}-byte samples"
            )
        return _CODECS[self.bytes_per_sample][2](raw)

    def encode_block(self, values: ArrayLike | Iterable[int]) -> bytes:
        """Encode a run of samples, flattened in C order.

        Raises:
            TypeError: If ``values`` are not integers.
            ValueError: If any value is outside the range of the bit depth.
        """
        if not isinstance(values, np.ndarray):
            values = np.array(list(values))
        flat = values.reshape(-1)
        if flat.size == 0:
            return b""
        if flat.dtype.kind == "O":
            raise ValueError("samples must fit in 64-bit integers")
        if flat.dtype.kind not in "iu":
            raise TypeError(f"samples must be integers, got dtype {flat.dtype}")

        low, high = int(flat.min()), int(flat.max())
        if low < self.min_value or high > self.max_value:
            bad = low if low < self.min_value else high
            raise ValueError(
                f"sample {bad} out of range for {self.bits_per_sample}-bit audio "
                f"[{self.min_value}, {self.max_value}]"
            )
        return _CODECS[self.bytes_per_sample][3](flat.astype(np.int64))


def codec_for(bits_per_sample: int) -> SampleCodec:
    """Select the codec for a bit depth.

    Raises:
        UnsupportedError: If the bit depth is outside 1-32.
    """
    return SampleCodec(bits_per_sample)


def check_sample_type(dtype: DTypeLike, bits_per_sample: int) -> np.dtype[Any]:
    """Check that a caller-chosen sample type can hold ``bits_per_sample`` bits.

    Args:
        dtype: A numpy signed integer type (``np.int8`` .. ``np.int64``).
        bits_per_sample: Bit depth of the stream.

    Returns:
        The normalized numpy dtype.

    Raises:
        TypeError: If ``dtype`` is not a signed integer type.
        TooWideError: If ``dtype`` is narrower than ``bits_per_sample``.
    """
    dt = np.dtype(dtype)
    if dt.kind != "i":
        raise TypeError(f"sample type must be a signed integer type, got {dt}")

    type_bits = dt.itemsize * 8
    if type_bits < bits_per_sample:
        raise TooWideError(bits_per_sample, type_bits)
    return dt
