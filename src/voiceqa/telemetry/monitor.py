"""Cancellable audio polling loop feeding overlap events into a recorder."""

import asyncio
import logging
from collections.abc import Callable

from voiceqa.telemetry.analyzer import FrameResult, SignalAnalyzer
from voiceqa.telemetry.config import settings
from voiceqa.telemetry.recorder import TelemetryRecorder
from voiceqa.telemetry.sources import AudioSource


class AudioMonitor:
    """
    Polls an audio source at a fixed cadence and reports barge-ins.

    One monitor drives one conversation. Each tick reads the source's
    current window, updates the analyzer with the agent-speaking state and,
    on the first frame of an overlap span, records an overlap event and
    checks barge-in latency on the recorder.

    Usage:
        monitor = AudioMonitor(
            source=RingBufferSource(),
            recorder=recorder,
            is_agent_speaking=bridge.is_agent_speaking,
            on_level=lambda level: print(f"{level:.2f}"),
        )
        async with monitor:
            ...  # conversation runs
    """

    def __init__(
        self,
        source: AudioSource,
        recorder: TelemetryRecorder,
        is_agent_speaking: Callable[[], bool],
        analyzer: SignalAnalyzer | None = None,
        frame_interval: float | None = None,
        on_level: Callable[[float], None] | None = None,
        clock: Callable[[], int] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the monitor.

        Args:
            source: Capture device providing the sample window.
            recorder: Recorder receiving overlap and barge-in events.
            is_agent_speaking: Polled once per frame.
            analyzer: Signal analyzer; a fresh one is created by default.
            frame_interval: Seconds between frames; defaults to ``settings.frame_interval``.
            on_level: Called with the smoothed level after every frame, and
                with 0.0 on stop.
            clock: Millisecond clock; defaults to the recorder's clock.
            logger: Logger instance; defaults to ``logging.getLogger("voiceqa.telemetry")``.
        """
        self.source = source
        self.recorder = recorder
        self.is_agent_speaking = is_agent_speaking
        self.analyzer = analyzer or SignalAnalyzer()
        self.frame_interval = (
            frame_interval if frame_interval is not None else settings.frame_interval
        )
        self.on_level = on_level
        self.clock = clock or recorder.clock
        self.logger = logger or logging.getLogger("voiceqa.telemetry")
        self._task: asyncio.Task[None] | None = None
        self._source_open = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def level(self) -> float:
        return self.analyzer.level

    async def start(self) -> None:
        """Acquire the source and start polling.

        Raises:
            Exception: Whatever the source raised while opening. The error is
                recorded on the recorder and the source is released first.
        """
        if self.running:
            return
        try:
            self.source.open()
        except Exception as exc:
            self.recorder.record_error(f"Audio capture setup failed: {exc}")
            self._release_source(force=True)
            raise
        self._source_open = True
        self._task = asyncio.create_task(self._run())
        self.logger.info("Audio monitor started")

    async def stop(self) -> None:
        """Stop polling and release the source. Safe to call repeatedly."""
        task, self._task = self._task, None
        try:
            if task is not None:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    current = asyncio.current_task()
                    if current is not None and current.cancelling():
                        raise
                self.logger.info("Audio monitor stopped")
        finally:
            self._release_source()

    def tick(self) -> FrameResult:
        """Analyse the source's current window once."""
        timestamp = int(round(self.clock()))
        frame = self.analyzer.process(
            self.source.read(),
            agent_speaking=self.is_agent_speaking(),
            timestamp=timestamp,
        )
        if frame.overlap_started:
            self.logger.debug("Overlap detected at %d", timestamp)
            self.recorder.record_overlap_event()
            self.recorder.maybe_record_barge_in_latency(timestamp)
        if self.on_level is not None:
            self.on_level(frame.level)
        return frame

    async def _run(self) -> None:
        try:
            while True:
                self.tick()
                await asyncio.sleep(self.frame_interval)
        except Exception as exc:
            self.logger.exception("Audio monitor loop failed")
            self.recorder.record_error(f"Audio monitor failed: {exc}")
        finally:
            self._release_source()

    def _release_source(self, force: bool = False) -> None:
        if not (self._source_open or force):
            return
        self._source_open = False
        try:
            self.source.close()
        except Exception as exc:
            self.logger.warning("Failed to release audio source: %s", exc)
        self.analyzer.reset()
        if self.on_level is not None:
            self.on_level(0.0)

    async def __aenter__(self) -> "AudioMonitor":
        await self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.stop()
