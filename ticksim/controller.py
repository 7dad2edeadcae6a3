from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from .algorithms import FIFOScheduler, Scheduler, get_scheduler
from .clock import ListenerRegistry, SystemClock
from .models import (
    IDLE,
    ContextSwitch,
    ControllerPhase,
    Process,
    SchedulerConfig,
    TickRecord,
    TimelineState,
)
from .timeline import TimelineRecorder

logger = logging.getLogger(__name__)


class SimController:
    """
    Drives one simulation: subscribes to the clock, asks the scheduler for a
    process on every tick, advances every arrived process (run or wait),
    enforces the quantum and records the timeline.

    The clock and config belong to the caller. The controller owns its
    scheduler and timeline recorder.
    """

    def __init__(self, clock: SystemClock, config: SchedulerConfig) -> None:
        self.clock = clock
        self.config = config
        self.scheduler: Scheduler = self._resolve_scheduler(config.algorithm_name)
        self.timeline = TimelineRecorder()

        self.context_switches: List[ContextSwitch] = []
        self.tick_log: List[TickRecord] = []

        self._current: Optional[Process] = None
        self._quantum_counter = 0
        self._phase = ControllerPhase.IDLE
        self._finished = threading.Event()
        self._listeners = ListenerRegistry("tick record listener")
        self._tick_limit: Optional[int] = None

        clock.add_listener(self.on_tick)

    @staticmethod
    def _resolve_scheduler(name: str) -> Scheduler:
        try:
            return get_scheduler(name)
        except ValueError:
            logger.warning("Unknown scheduler '%s'; falling back to FIFO", name)
            return FIFOScheduler()

    # -- read-only accessors -------------------------------------------------

    @property
    def processes(self) -> List[Process]:
        return self.config.processes

    @property
    def current_time(self) -> int:
        return self.clock.current_time

    @property
    def is_finished(self) -> bool:
        return self._finished.is_set()

    @property
    def phase(self) -> ControllerPhase:
        return self._phase

    @property
    def current_process(self) -> Optional[Process]:
        return self._current

    @property
    def quantum_counter(self) -> int:
        return self._quantum_counter

    def add_listener(self, listener: Callable[[TickRecord], None]) -> None:
        """Subscribe to the per-tick record published after every tick."""
        self._listeners.add(listener)

    def remove_listener(self, listener: Callable[[TickRecord], None]) -> None:
        self._listeners.remove(listener)

    # -- driving -------------------------------------------------------------

    def start(self, max_ticks: Optional[int] = None) -> None:
        """
        Drive the simulation with the background clock. With ``max_ticks`` the
        clock is stopped from the tick that reaches that time.
        """
        self._tick_limit = max_ticks
        logger.info(
            "Starting simulation with %s scheduler (quantum=%d, %d processes)",
            self.scheduler.name,
            self.config.quantum,
            len(self.processes),
        )
        self.clock.start()

    def stop(self) -> None:
        self.clock.stop()
        logger.info("Simulation stopped at t=%d", self.clock.current_time)

    def step(self) -> Optional[TickRecord]:
        """
        Run exactly one manual tick. Returns the tick record, or None when the
        simulation had already finished.
        """
        self._ensure_manual()
        before = len(self.tick_log)
        self.clock.tick()
        return self.tick_log[-1] if len(self.tick_log) > before else None

    def run_until_finished(self, max_ticks: Optional[int] = None) -> int:
        """
        Tick manually until every process completed or ``max_ticks`` ticks ran.
        Returns the number of ticks executed.
        """
        self._ensure_manual()
        ticks = 0
        while not self.is_finished:
            if max_ticks is not None and ticks >= max_ticks:
                logger.warning("Stopped after %d ticks without finishing", ticks)
                break
            self.clock.tick()
            ticks += 1
        return ticks

    def wait_finished(self, timeout: Optional[float] = None) -> bool:
        return self._finished.wait(timeout)

    def reset(self) -> None:
        if self.clock.is_running:
            raise RuntimeError("Stop the clock before resetting the simulation")
        for p in self.processes:
            p.reset()
        self.clock.reset()
        self.timeline.clear()
        self.context_switches.clear()
        self.tick_log.clear()
        self._current = None
        self._quantum_counter = 0
        self._phase = ControllerPhase.IDLE
        self._finished.clear()
        self._tick_limit = None

    def detach(self) -> None:
        self.clock.remove_listener(self.on_tick)

    def _ensure_manual(self) -> None:
        if self.clock.is_running:
            raise RuntimeError("Manual stepping requires the clock to be stopped")

    # -- tick handling -------------------------------------------------------

    def on_tick(self, time: int) -> None:
        if self.is_finished:
            return

        processes = self.processes
        selected = self._select(processes, time)

        executed: Optional[Process] = None
        for p in processes:
            if not p.is_eligible(time):
                continue
            if p is selected:
                p.execute_tick()
                executed = p
            else:
                p.wait_tick()
                self.timeline.record(p.pid, time, time + 1, TimelineState.WAITING)

        if executed is not None:
            self._quantum_counter += 1
            self._phase = ControllerPhase.RUNNING
            self.timeline.record(executed.pid, time, time + 1, TimelineState.RUNNING)
            if executed.completed:
                self.timeline.record(executed.pid, time, time + 1, TimelineState.TERMINATED)
                logger.info("[t=%d] %s terminated (wait=%d)", time, executed.pid, executed.wait_time)
            record = TickRecord(
                time=time,
                pid=executed.pid,
                run_time=executed.run_time,
                duration=executed.duration,
                quantum_progress=self._quantum_counter,
            )
            logger.debug(
                "[t=%d] Running %s (runtime=%d/%d)", time, executed.pid, executed.run_time, executed.duration
            )
        else:
            self._phase = ControllerPhase.IDLE
            record = TickRecord(time=time, pid=IDLE, run_time=0, duration=0, quantum_progress=0)
            logger.debug("[t=%d] CPU idle", time)

        self.tick_log.append(record)
        self._listeners.notify(record)

        if all(p.completed for p in processes):
            self._phase = ControllerPhase.FINISHED
            self._finished.set()
            logger.info("Simulation finished at t=%d", time + 1)
            self.clock.stop()
        elif self.clock.is_running and self._tick_limit is not None and time + 1 >= self._tick_limit:
            logger.warning("Stopped after %d ticks without finishing", time + 1)
            self.clock.stop()

    def _select(self, processes: List[Process], time: int) -> Optional[Process]:
        previous = self._current
        quantum_expired = self._quantum_counter >= self.config.quantum
        if previous is not None and not previous.completed and not quantum_expired:
            return previous

        self._phase = ControllerPhase.SWITCHING
        candidates = processes
        if quantum_expired and previous is not None and not previous.completed:
            # The preempted process yields only to ready processes of equal rank.
            rank = self.scheduler.rank(previous)
            others = [p for p in processes if p is not previous]
            if any(p.is_eligible(time) and self.scheduler.rank(p) == rank for p in others):
                candidates = others

        selected = self.scheduler.next_process(candidates, time)
        if selected is not None and not self._is_valid_choice(selected, processes, time):
            logger.error(
                "[t=%d] %s scheduler selected ineligible process %s; treating tick as idle",
                time,
                self.scheduler.name,
                selected.pid,
            )
            selected = None

        self._quantum_counter = 0
        if selected is not previous:
            switch = ContextSwitch(
                time=time,
                previous=previous.pid if previous is not None else None,
                selected=selected.pid if selected is not None else None,
            )
            self.context_switches.append(switch)
            logger.debug(
                "[t=%d] Context switch %s -> %s", time, switch.previous or IDLE, switch.selected or IDLE
            )
        self._current = selected
        return selected

    @staticmethod
    def _is_valid_choice(selected: Process, processes: List[Process], time: int) -> bool:
        return selected.is_eligible(time) and any(p is selected for p in processes)
