"""Error taxonomy shared by the WAV reader and writer."""


class WavError(Exception):
    """Base class for errors reading or writing WAV streams."""


class WavIOError(WavError):
    """The underlying stream failed.

    The original ``OSError`` is kept unchanged on ``error`` (and as ``__cause__``).
    """

    def __init__(self, error: OSError) -> None:
        self.error = error
        super().__init__(str(error))


class MalformedDataError(WavError):
    """Ill-formed WAVE data was encountered."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Ill-formed WAVE data: {reason}")


class TooWideError(WavError):
    """The sample has more bits than the requested sample type can hold."""

    def __init__(self, bits_per_sample: int, type_bits: int) -> None:
        self.bits_per_sample = bits_per_sample
        self.type_bits = type_bits
        super().__init__(
            f"{bits_per_sample}-bit samples do not fit a {type_bits}-bit sample type"
        )


class UnsupportedError(WavError):
    """The wave format of the stream is not supported."""
