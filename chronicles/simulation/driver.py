"""Wall-clock driver: calls ``engine.tick()`` on a background thread.

The engine stays single-writer. Ticks run one at a time under a lock, and a
speed change waits for any in-flight tick before the new schedule starts.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from chronicles.core.config import BASE_TICK_INTERVAL
from chronicles.simulation.engine import SimulationEngine


class SimulationDriver:
    """Play / pause / speed control around a SimulationEngine."""

    def __init__(
        self,
        engine: SimulationEngine,
        base_interval: float = BASE_TICK_INTERVAL,
        speed: float = 1.0,
    ) -> None:
        if speed <= 0:
            raise ValueError(f"speed must be positive, got {speed}")
        self.engine = engine
        self.base_interval = base_interval
        self._speed = speed
        self._running = False
        self._tick_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._callback: Optional[Callable[[SimulationEngine], None]] = None

    # -- properties --

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def interval(self) -> float:
        return self.base_interval / self._speed

    def set_tick_callback(self, callback: Optional[Callable[[SimulationEngine], None]]) -> None:
        """Called on the driver thread after every tick."""
        self._callback = callback

    # -- controls --

    def play(self) -> None:
        if self._running or self.engine.is_extinct:
            return
        self._running = True
        self._start_thread()

    def pause(self) -> None:
        if not self._running:
            return
        self._running = False
        self._stop_thread()
        self.engine.save()

    def toggle(self) -> None:
        if self._running:
            self.pause()
        else:
            self.play()

    def set_speed(self, speed: float) -> None:
        """Change speed; a running schedule restarts at the new interval."""
        if speed <= 0:
            raise ValueError(f"speed must be positive, got {speed}")
        self._speed = speed
        if self._running:
            self._stop_thread()
            self._start_thread()

    def step(self) -> None:
        """Run exactly one tick on the caller's thread."""
        with self._tick_lock:
            self.engine.tick()

    def reset(self) -> None:
        self.pause()
        with self._tick_lock:
            self.engine.reset()

    def close(self) -> None:
        """Stop ticking and flush the state to the store."""
        was_running = self._running
        self.pause()
        if not was_running:
            self.engine.save()

    # -- internals --

    def _start_thread(self) -> None:
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run_loop, args=(self._stop,), name="chronicles-driver", daemon=True,
        )
        self._thread.start()

    def _stop_thread(self) -> None:
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def _run_loop(self, stop: threading.Event) -> None:
        while not stop.wait(self.interval):
            with self._tick_lock:
                if stop.is_set():
                    break
                self.engine.tick()
            if self._callback:
                self._callback(self.engine)
            if self.engine.is_extinct:
                # The engine already saved on extinction.
                self._running = False
                stop.set()
                break
