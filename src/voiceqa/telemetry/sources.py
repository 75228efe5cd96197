"""Audio sources feeding the signal analyzer."""

from collections import deque
from collections.abc import Sequence
from typing import Literal, Protocol, runtime_checkable

from voiceqa.telemetry.analyzer import normalize_pcm16, normalize_uint8
from voiceqa.telemetry.config import settings

SampleFormat = Literal["pcm16", "uint8", "float"]
"""
Encoding of chunks pushed into a ``RingBufferSource``.

- pcm16: Little-endian signed 16-bit PCM bytes
- uint8: Unsigned 8-bit time-domain bytes centered on 128
- float: Already-normalized signed samples in [-1, 1]
"""


@runtime_checkable
class AudioSource(Protocol):
    """A live capture device exposing a fixed-size time-domain window."""

    def open(self) -> None:
        """Acquire the capture device. May raise (e.g. permission denied)."""
        ...

    def read(self) -> Sequence[float]:
        """Return the current window of signed samples in [-1, 1]."""
        ...

    def close(self) -> None:
        """Release the capture device and any processing nodes."""
        ...


class RingBufferSource:
    """
    Keeps the latest ``window_size`` samples of pushed audio.

    Suited to transports that deliver audio as chunks (WebRTC/websocket
    frames). ``read`` returns a snapshot of the current window.
    """

    def __init__(
        self,
        window_size: int | None = None,
        sample_format: SampleFormat = "pcm16",
    ) -> None:
        self.window_size = window_size or settings.window_size
        self.sample_format = sample_format
        self._window: deque[float] = deque(maxlen=self.window_size)
        self.is_open = False
        self.closed = False

    def open(self) -> None:
        """Acquire (or re-acquire after ``close``) the source."""
        self.closed = False
        self.is_open = True

    def push(self, chunk: bytes | Sequence[float]) -> None:
        """Append a chunk of audio; ignored once the source is closed."""
        if self.closed:
            return
        if self.sample_format == "pcm16":
            self._window.extend(normalize_pcm16(bytes(chunk)))
        elif self.sample_format == "uint8":
            self._window.extend(normalize_uint8(chunk))
        else:
            self._window.extend(chunk)

    def read(self) -> list[float]:
        return list(self._window)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.is_open = False
        self._window.clear()
