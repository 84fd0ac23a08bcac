"""
Cooperative animation driver for the particle simulator.

Ticks run to completion one at a time; the only suspension point is
between ticks, where the caller (a frame callback or timer) decides when
the next one runs.
"""

from typing import Callable, Iterator, Optional

from common.logging_config import get_logger
from flow_visualization.particles import ParticleAdvectionSimulator, SegmentBatch

SegmentSink = Callable[[SegmentBatch], None]


class FlowAnimation:
    """Single-threaded driver yielding one ``SegmentBatch`` per frame."""

    def __init__(self, simulator: ParticleAdvectionSimulator):
        self.simulator = simulator
        self._running = False
        self._logger = get_logger("FlowAnimation")

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Stop after the current tick."""
        self._running = False

    def frames(self, max_ticks: Optional[int] = None) -> Iterator[SegmentBatch]:
        """Yield one tick at a time until stopped or ``max_ticks`` is reached.

        The driver is claimed when this is called, not on the first frame,
        so a second ``frames()`` raises immediately. ``stop()`` releases a
        claim whose iterator was never advanced.
        """
        if self._running:
            raise RuntimeError("Animation is already running")
        self._running = True
        return self._tick_loop(max_ticks)

    def _tick_loop(self, max_ticks: Optional[int]) -> Iterator[SegmentBatch]:
        count = 0
        try:
            while self._running and (max_ticks is None or count < max_ticks):
                yield self.simulator.tick()
                count += 1
        finally:
            self._running = False
            self._logger.debug(f"Animation stopped after {count} ticks")

    def run(self, ticks: int, sink: SegmentSink) -> int:
        """Drive ``ticks`` frames into ``sink``; returns the number of segments."""
        total = 0
        for batch in self.frames(ticks):
            sink(batch)
            total += len(batch)
        return total
