import itertools
from pathlib import Path
from typing import Annotated

import numpy as np
from cyclopts import App, Parameter
from rich.console import Console
from rich.table import Table

from riffwav.cli.validators import validate_amplitude, validate_bit_depth, validate_positive
from riffwav.codec import codec_for
from riffwav.errors import WavError
from riffwav.reader import WavReader
from riffwav.types import WavSpec
from riffwav.writer import WavWriter

app = App(name="riffwav", help="Inspect and generate integer PCM WAV files")
console = Console()


def print_error(message: str) -> None:
    """Print an error message in red."""
    console.print(message, style="bold red")


def print_success(message: str) -> None:
    """Print a success message in green."""
    console.print(message, style="bold green")


@app.command
def info(file: Path) -> int:
    """
    Display the audio format of a WAV file.

    Parameters
    ----------
    file: Path
        The path to the .wav file
    """
    try:
        with WavReader.open(file) as reader:
            spec = reader.spec
            frames = reader.duration
    except WavError as e:
        print_error(f"Error: {file}: {e}")
        return 1

    table = Table(title=str(file))
    table.add_column("Field")
    table.add_column("Value", justify="right")
    table.add_row("Channels", str(spec.channels))
    table.add_row("Sample rate", f"{spec.sample_rate} Hz")
    table.add_row("Bits per sample", str(spec.bits_per_sample))
    table.add_row("Block align", str(spec.block_align))
    table.add_row("Byte rate", str(spec.byte_rate))
    table.add_row("Frames", str(frames))
    table.add_row("Duration", f"{frames / spec.sample_rate:.3f} s")
    console.print(table)
    return 0


@app.command
def dump(
    file: Path,
    count: Annotated[int, Parameter(validator=validate_positive)] = 16,
) -> int:
    """
    Print the first frames of a WAV file as integers.

    Parameters
    ----------
    file: Path
        The path to the .wav file
    count: int
        The number of frames to print
    """
    try:
        with WavReader.open(file) as reader:
            channels = reader.spec.channels
            samples = list(itertools.islice(reader.samples(np.int64), count * channels))
    except WavError as e:
        print_error(f"Error: {file}: {e}")
        return 1

    table = Table()
    table.add_column("Frame", justify="right")
    for channel in range(channels):
        table.add_column(f"Ch {channel}", justify="right")

    for frame in range(len(samples) // channels):
        row = samples[frame * channels : (frame + 1) * channels]
        table.add_row(str(frame), *(str(int(s)) for s in row))

    console.print(table)
    return 0


@app.command
def peak(file: Path) -> int:
    """
    Display peak and RMS levels per channel.

    Parameters
    ----------
    file: Path
        The path to the .wav file
    """
    try:
        with WavReader.open(file) as reader:
            spec = reader.spec
            data = reader.read_array(np.int64)
    except WavError as e:
        print_error(f"Error: {file}: {e}")
        return 1

    full_scale = float(1 << (spec.bits_per_sample - 1))

    table = Table(title=str(file))
    table.add_column("Channel", justify="right")
    table.add_column("Peak", justify="right")
    table.add_column("Peak dBFS", justify="right")
    table.add_column("RMS dBFS", justify="right")

    for channel in range(spec.channels):
        values = data[:, channel].astype(np.float64)
        if values.size == 0:
            table.add_row(str(channel), "-", "-", "-")
            continue

        peak_value = int(np.max(np.abs(values)))
        rms = float(np.sqrt(np.mean(values**2)))
        table.add_row(
            str(channel),
            str(peak_value),
            _format_dbfs(peak_value / full_scale),
            _format_dbfs(rms / full_scale),
        )

    console.print(table)
    return 0


def _format_dbfs(level: float) -> str:
    if level <= 0.0:
        return "-inf"
    return f"{20.0 * np.log10(level):.2f}"


@app.command
def tone(
    output: Path = Path("tone.wav"),
    frequency: Annotated[float, Parameter(validator=validate_positive)] = 440.0,
    duration: Annotated[float, Parameter(validator=validate_positive)] = 1.0,
    sample_rate: Annotated[int, Parameter(validator=validate_positive)] = 44100,
    bits: Annotated[int, Parameter(validator=validate_bit_depth)] = 16,
    channels: Annotated[int, Parameter(validator=validate_positive)] = 1,
    amplitude: Annotated[float, Parameter(validator=validate_amplitude)] = 0.5,
) -> int:
    """
    Render a sine tone to a WAV file.

    Parameters
    ----------
    output: Path
        The output destination for the .wav file
    frequency: float
        The tone frequency in Hz
    duration: float
        The length of the tone in seconds
    sample_rate: int
        The sample rate in Hz
    bits: int
        The bits per sample (1-32)
    channels: int
        The number of channels; every channel carries the same tone
    amplitude: float
        Peak amplitude relative to full scale (0.0-1.0)
    """
    try:
        spec = WavSpec(channels=channels, sample_rate=sample_rate, bits_per_sample=bits)
    except (WavError, ValueError) as e:
        print_error(f"Error: {e}")
        return 1

    num_frames = int(round(duration * sample_rate))
    t = np.arange(num_frames) / sample_rate
    wave = amplitude * np.sin(2.0 * np.pi * frequency * t)
    samples = np.round(wave * codec_for(bits).max_value).astype(np.int64)
    frames = np.repeat(samples[:, np.newaxis], channels, axis=1)

    output.parent.mkdir(parents=True, exist_ok=True)
    try:
        with WavWriter.create(output, spec) as writer:
            writer.write_samples(frames)
    except WavError as e:
        print_error(f"Error: {output}: {e}")
        return 1

    print_success(f"Wrote {num_frames} frames of {frequency} Hz to {output}")
    return 0
