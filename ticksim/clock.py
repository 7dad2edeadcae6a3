from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

TickListener = Callable[[int], None]

# Upper bound for stop() waiting on the tick thread.
JOIN_TIMEOUT_S = 1.0


class ListenerRegistry:
    """
    Ordered set of callbacks.

    The lock only guards mutation and snapshotting; callbacks run outside it
    so a listener may add or remove listeners while being notified.
    """

    def __init__(self, name: str = "listeners") -> None:
        self.name = name
        self._callbacks: List[Callable] = []
        self._lock = threading.Lock()

    def add(self, callback: Optional[Callable]) -> None:
        if callback is None:
            return
        with self._lock:
            if callback not in self._callbacks:
                self._callbacks.append(callback)

    def remove(self, callback: Optional[Callable]) -> None:
        if callback is None:
            return
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def snapshot(self) -> List[Callable]:
        with self._lock:
            return list(self._callbacks)

    def notify(self, *args) -> None:
        for callback in self.snapshot():
            try:
                callback(*args)
            except Exception:
                logger.exception("Error in %s callback %r", self.name, callback)

    def __len__(self) -> int:
        with self._lock:
            return len(self._callbacks)


class SystemClock:
    """
    Logical tick counter with an optional background cadence.

    Each tick notifies listeners with the time of the interval about to
    execute and only then advances the counter, so the first notification
    carries t=0.
    """

    def __init__(self, tick_interval_ms: int = 100) -> None:
        self.tick_interval_ms = max(1, int(tick_interval_ms))
        self._current_time = 0
        self._running = False
        self._listeners = ListenerRegistry("tick listener")
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def current_time(self) -> int:
        return self._current_time

    @property
    def is_running(self) -> bool:
        return self._running

    def add_listener(self, listener: TickListener) -> None:
        self._listeners.add(listener)

    def remove_listener(self, listener: TickListener) -> None:
        self._listeners.remove(listener)

    def start(self) -> None:
        with self._state_lock:
            if self._running:
                return
            self._running = True
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                name="clock-tick",
                daemon=True,
            )
            self._thread.start()
        logger.debug("Clock started (interval %d ms)", self.tick_interval_ms)

    def stop(self) -> None:
        with self._state_lock:
            if not self._running:
                return
            self._running = False
            self._stop_event.set()
            thread, self._thread = self._thread, None

        # A listener stopping the clock runs on the tick thread itself; the
        # loop sees the cleared flag as soon as that tick returns.
        if thread is not None and thread is not threading.current_thread():
            thread.join(JOIN_TIMEOUT_S)
            if thread.is_alive():
                logger.warning("Clock thread did not exit within %.1fs", JOIN_TIMEOUT_S)
        logger.debug("Clock stopped at t=%d", self._current_time)

    def tick(self) -> None:
        time = self._current_time
        self._listeners.notify(time)
        self._current_time = time + 1

    def reset(self) -> None:
        with self._state_lock:
            if self._running:
                raise RuntimeError("Cannot reset the clock while it is running")
            self._current_time = 0

    def _run(self, stop_event: threading.Event) -> None:
        interval = self.tick_interval_ms / 1000.0
        while self._running and not stop_event.is_set():
            if stop_event.wait(interval):
                break
            if not self._running:
                break
            self.tick()
