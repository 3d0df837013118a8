import io
from collections.abc import Callable, Sequence

import pytest
from wavfixtures import chunk, pcm_fmt, riff


@pytest.fixture
def make_wav() -> Callable[..., io.BytesIO]:
    """Build a WAV stream from a fmt payload and raw data bytes."""

    def _make_wav(
        fmt: bytes | None = None,
        data: bytes = b"",
        *,
        before: Sequence[bytes] = (),
        after: Sequence[bytes] = (),
    ) -> io.BytesIO:
        chunks = list(before)
        chunks.append(chunk(b"fmt ", pcm_fmt() if fmt is None else fmt))
        chunks.append(chunk(b"data", data))
        chunks.extend(after)
        return io.BytesIO(riff(chunks))

    return _make_wav
