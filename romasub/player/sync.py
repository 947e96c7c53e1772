"""Keeps a transcript view in step with a playing video.

The player and the view are collaborators: the player reports the current
play time and can seek/play, the view highlights one line at a time. All
state changes happen inside ``tick()``, which runs on a single repeating task.
"""

import threading
from typing import Callable, List, Optional, Protocol, Sequence
from romasub.config import settings
from romasub.models.transcript import Segment
from romasub.utils.logger import logger


class Player(Protocol):
    def get_current_time(self) -> float: ...

    def seek(self, time: float) -> None: ...

    def play(self) -> None: ...


class TranscriptView(Protocol):
    def activate(self, index: int) -> None:
        """Highlight the line and bring it into view."""

    def deactivate(self, index: int) -> None: ...


def find_active_index(segments: Sequence[Segment], current: float) -> Optional[int]:
    """Index of the segment whose ``[start, end)`` contains ``current``.

    ``segments`` must be sorted and non-overlapping. Times in a gap between
    segments, or outside all of them, give None.
    """
    lo, hi = 0, len(segments) - 1
    while lo <= hi:
        mid = (lo + hi) // 2
        seg = segments[mid]
        if current < seg.start:
            hi = mid - 1
        elif current >= seg.end:
            lo = mid + 1
        else:
            return mid
    return None


class RepeatingTask:
    """Calls ``fn`` every ``interval`` seconds on one worker thread."""

    def __init__(self, fn: Callable[[], None], interval: float):
        self.fn = fn
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(self._stop,), name="romasub-sync", daemon=True)
        self._thread.start()

    def _run(self, stop: threading.Event):
        while not stop.wait(self.interval):
            try:
                self.fn()
            except Exception:
                logger.exception("Sync tick failed")

    def stop(self):
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join()


class PlaybackSynchronizer:
    def __init__(self, player: Player, view: TranscriptView, interval: Optional[float] = None):
        self.player = player
        self.view = view
        self.segments: List[Segment] = []
        self.active_index: Optional[int] = None
        self._lock = threading.Lock()
        self._task = RepeatingTask(self.tick, interval or settings.SYNC_INTERVAL)

    def load(self, segments: Sequence[Segment]):
        with self._lock:
            self.segments = sorted(segments, key=lambda s: s.start)
            self.active_index = None

    def current_time(self) -> float:
        try:
            return float(self.player.get_current_time() or 0)
        except Exception as e:
            logger.debug(f"Player time unavailable: {e}")
            return 0.0

    def tick(self):
        with self._lock:
            if not self.segments:
                return
            idx = find_active_index(self.segments, self.current_time())
            if idx == self.active_index:
                return
            if self.active_index is not None:
                self.view.deactivate(self.active_index)
            self.active_index = idx
            if idx is not None:
                self.view.activate(idx)

    def seek(self, index: int):
        """Jump playback to a line. The highlight follows on the next tick."""
        with self._lock:
            if not 0 <= index < len(self.segments):
                raise IndexError(f"No transcript line at index {index}")
            seg = self.segments[index]
        self.player.seek(seg.start)
        self.player.play()

    def start(self):
        self._task.start()

    def stop(self):
        self._task.stop()

    @property
    def running(self) -> bool:
        return self._task.running
