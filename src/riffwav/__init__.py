"""riffwav - Integer PCM WAV encoding and decoding.

This package reads and writes RIFF/WAVE streams holding uncompressed integer
PCM audio at 1 to 32 bits per sample.

File Layout
-----------
Files written by ``WavWriter`` always have a 44-byte header:

    +----------------------------------------+
    | RIFF header ("WAVE")                   |
    +----------------------------------------+
    | fmt  chunk (16 bytes, PCM)             |
    +----------------------------------------+
    | data chunk (interleaved samples)       |
    |   - little-endian                      |
    |   - 8-bit samples unsigned, others     |
    |     signed two's complement            |
    +----------------------------------------+

``WavReader`` also accepts extra chunks before ``data`` and
WAVE_FORMAT_EXTENSIBLE headers with a PCM sub-format.

Example Usage
-------------
>>> import io
>>> from riffwav import WavReader, WavSpec, WavWriter
>>>
>>> buffer = io.BytesIO()
>>> spec = WavSpec(channels=2, sample_rate=44100, bits_per_sample=16)
>>> writer = WavWriter(buffer, spec)
>>> for s in range(-4, 4):
...     writer.write_sample(s)
>>> writer.finalize()
>>>
>>> _ = buffer.seek(0)
>>> reader = WavReader(buffer)
>>> reader.spec == spec
True
>>> [int(s) for s in reader.samples()]
[-4, -3, -2, -1, 0, 1, 2, 3]
"""

from riffwav.codec import SampleCodec, check_sample_type, codec_for
from riffwav.errors import (
    MalformedDataError,
    TooWideError,
    UnsupportedError,
    WavError,
    WavIOError,
)
from riffwav.reader import WavReader, WavSamples
from riffwav.types import WavSpec
from riffwav.writer import WavWriter

__all__ = [
    # Types
    "WavSpec",
    # Reader
    "WavReader",
    "WavSamples",
    # Writer
    "WavWriter",
    # Codec
    "SampleCodec",
    "codec_for",
    "check_sample_type",
    # Errors
    "WavError",
    "WavIOError",
    "MalformedDataError",
    "TooWideError",
    "UnsupportedError",
]
