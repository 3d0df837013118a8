"""Audio format description for WAV streams."""

import logging
import struct
from dataclasses import dataclass

from riffwav.codec import MAX_BITS_PER_SAMPLE, MIN_BITS_PER_SAMPLE
from riffwav.errors import MalformedDataError, UnsupportedError
from riffwav.riff import WAVE_FORMAT_EXTENSIBLE, WAVE_FORMAT_PCM

logger = logging.getLogger(__name__)

PCM_FMT_CHUNK_SIZE = 16
# Largest fmt payload that is parsed; anything past the sub-format GUID is ignored
EXTENSIBLE_FMT_CHUNK_SIZE = 40

# KSDATAFORMAT_SUBTYPE_PCM; the first two bytes repeat the PCM format code
PCM_SUBFORMAT_GUID = bytes.fromhex("0100000000001000800000aa00389b71")


@dataclass(frozen=True)
class WavSpec:
    """Properties of the audio data: channel count, sample rate and bit depth.

    Immutable and compared by value, so it can be shared freely between
    readers and writers.
    """

    channels: int
    """Number of interleaved channels."""

    sample_rate: int
    """Frames per second, e.g. 44100 for CD audio."""

    bits_per_sample: int
    """Significant bits per sample, e.g. 16 for CD audio."""

    def __post_init__(self) -> None:
        if not 1 <= self.channels <= 0xFFFF:
            raise ValueError(f"channel count must be 1-65535, got {self.channels}")
        if not 1 <= self.sample_rate <= 0xFFFFFFFF:
            raise ValueError(f"sample rate must be 1-4294967295, got {self.sample_rate}")
        if not MIN_BITS_PER_SAMPLE <= self.bits_per_sample <= MAX_BITS_PER_SAMPLE:
            raise UnsupportedError(
                f"Unsupported bit depth: {self.bits_per_sample}. "
                f"Use {MIN_BITS_PER_SAMPLE}-{MAX_BITS_PER_SAMPLE} bits."
            )

    @property
    def bytes_per_sample(self) -> int:
        """Bytes one sample occupies on disk."""
        return (self.bits_per_sample + 7) // 8

    @property
    def block_align(self) -> int:
        """Bytes per frame (one sample for every channel)."""
        return self.channels * self.bytes_per_sample

    @property
    def byte_rate(self) -> int:
        """Bytes per second of audio."""
        return self.sample_rate * self.block_align

    def to_fmt_chunk(self) -> bytes:
        """Pack the 16-byte PCM ``fmt `` chunk payload."""
        return struct.pack(
            "<HHIIHH",
            WAVE_FORMAT_PCM,
            self.channels,
            self.sample_rate,
            self.byte_rate,
            self.block_align,
            self.bits_per_sample,
        )

    @classmethod
    def from_fmt_chunk(cls, payload: bytes, *, strict: bool = False) -> "WavSpec":
        """Parse a ``fmt `` chunk payload.

        Byte rate and block align are cross-checked against the other fields.
        A mismatch is logged and the channel count, sample rate and bit depth
        are trusted, unless ``strict`` is set.

        Args:
            payload: The chunk content, without its header.
            strict: Whether byte rate/block align mismatches are fatal.

        Returns:
            The parsed format.

        Raises:
            MalformedDataError: If the payload is truncated or inconsistent.
            UnsupportedError: If the audio format is not PCM.
        """
        if len(payload) < PCM_FMT_CHUNK_SIZE:
            raise MalformedDataError(f"fmt chunk too small: {len(payload)} bytes")

        audio_format, channels, sample_rate, byte_rate, block_align, bits_per_sample = (
            struct.unpack("<HHIIHH", payload[:PCM_FMT_CHUNK_SIZE])
        )

        if audio_format == WAVE_FORMAT_EXTENSIBLE:
            audio_format = _extensible_subformat(payload)

        if audio_format != WAVE_FORMAT_PCM:
            raise UnsupportedError(f"Unsupported audio format code: {audio_format:#06x}")

        try:
            spec = cls(
                channels=channels,
                sample_rate=sample_rate,
                bits_per_sample=bits_per_sample,
            )
        except ValueError as e:
            raise MalformedDataError(str(e)) from e

        mismatches = []
        if block_align != spec.block_align:
            mismatches.append(f"block_align {block_align} (expected {spec.block_align})")
        if byte_rate != spec.byte_rate:
            mismatches.append(f"byte_rate {byte_rate} (expected {spec.byte_rate})")
        if mismatches:
            message = "fmt chunk fields disagree: " + ", ".join(mismatches)
            if strict:
                raise MalformedDataError(message)
            logger.warning("%s; trusting channels/sample_rate/bits_per_sample", message)

        return spec


def _extensible_subformat(payload: bytes) -> int:
    """Return the format code carried by a WAVE_FORMAT_EXTENSIBLE sub-format GUID."""
    # cbSize(2) validBits(2) channelMask(4) subFormat(16)
    if len(payload) < EXTENSIBLE_FMT_CHUNK_SIZE:
        raise MalformedDataError(f"extensible fmt chunk too small: {len(payload)} bytes")

    guid = payload[24:40]
    if guid[2:] != PCM_SUBFORMAT_GUID[2:]:
        raise UnsupportedError(f"Unsupported extensible sub-format: {guid.hex()}")
    return struct.unpack("<H", guid[:2])[0]
