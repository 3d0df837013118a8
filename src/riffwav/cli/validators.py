from riffwav.codec import MAX_BITS_PER_SAMPLE, MIN_BITS_PER_SAMPLE


def validate_bit_depth(type_: object, bits: int) -> None:
    """Validate that bits is a supported PCM bit depth."""
    if not MIN_BITS_PER_SAMPLE <= bits <= MAX_BITS_PER_SAMPLE:
        raise ValueError(
            f"Bit depth must be between {MIN_BITS_PER_SAMPLE} and {MAX_BITS_PER_SAMPLE}"
        )


def validate_positive(type_: object, value: int | float) -> None:
    if value <= 0:
        raise ValueError("Value must be positive")


def validate_amplitude(type_: object, amplitude: float) -> None:
    if not 0.0 <= amplitude <= 1.0:
        raise ValueError("Amplitude must be between 0.0 and 1.0")
