"""CPU sampling engine for pycpu."""

import logging
import threading
import time

import psutil

from pycpu.models import Snapshot
from pycpu.state import SharedState

logger = logging.getLogger(__name__)

MIN_INTERVAL = 0.05


class SamplerUnavailable(RuntimeError):
    """Raised when the OS CPU counters cannot be read at startup."""


class Sampler:
    """Reads per-core CPU utilization through psutil."""

    def __init__(self) -> None:
        """
        Prime psutil's per-core counters.

        psutil measures utilization since the previous call, so the first
        reading after this is a warm-up and may be all zeros.

        Raises:
            SamplerUnavailable: If the platform does not expose CPU counters.
        """
        try:
            psutil.cpu_percent(percpu=True)
        except (psutil.Error, OSError, NotImplementedError) as exc:
            raise SamplerUnavailable(f"cannot read CPU counters: {exc}") from exc

    def sample(self) -> Snapshot:
        """Return per-core usage since the previous call."""
        return Snapshot.from_percents(psutil.cpu_percent(percpu=True))


class SnapshotPublisher:
    """
    Drives a Sampler on a fixed period and commits each snapshot to a SharedState.

    Runs in a separate daemon thread. A failed sample is logged and skipped,
    leaving the previous snapshot in place.
    """

    def __init__(
        self,
        sampler: Sampler,
        state: SharedState,
        interval: float = 0.5,
    ) -> None:
        """
        Initialize the SnapshotPublisher.

        Args:
            sampler: Source of snapshots.
            state: Store the snapshots are written to.
            interval: Sampling period in seconds. Default 0.5s.
        """
        self._sampler = sampler
        self._state = state
        self._interval = max(MIN_INTERVAL, interval)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._ticks = 0
        self._failures = 0

    @property
    def interval(self) -> float:
        """Get the sampling period."""
        return self._interval

    @property
    def state(self) -> SharedState:
        return self._state

    @property
    def ticks(self) -> int:
        """Number of snapshots published so far."""
        return self._ticks

    @property
    def failures(self) -> int:
        """Number of samples that raised and were skipped."""
        return self._failures

    @property
    def is_running(self) -> bool:
        """Check if the publisher thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Publish a first snapshot, then start the publishing thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._tick()
        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name="SnapshotPublisher",
        )
        self._thread.start()
        logger.info("Sampling CPU usage every %.2fs", self._interval)

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the publishing thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            logger.info("Snapshot publisher stopped after %d ticks", self._ticks)

    def _run(self) -> None:
        """Main loop running in the background thread."""
        delay = self._interval
        # wait() returns True once stop is requested
        while not self._stop_event.wait(timeout=delay):
            started = time.monotonic()
            self._tick()
            delay = max(0.0, self._interval - (time.monotonic() - started))

    def _tick(self) -> None:
        """Sample once and publish the result."""
        try:
            snapshot = self._sampler.sample()
        except Exception:
            self._failures += 1
            logger.warning("CPU sample failed, keeping previous snapshot", exc_info=True)
            return

        self._state.write(snapshot)
        self._ticks += 1
