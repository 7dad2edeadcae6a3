from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Type

from .models import Process


class Scheduler:
    """
    Selection policy over the process set.

    Implementations hold no state between calls: the same processes at the
    same time always yield the same choice. None means the CPU stays idle.
    """

    name = "base"

    def next_process(self, processes: Sequence[Process], current_time: int) -> Optional[Process]:
        raise NotImplementedError

    def rank(self, process: Process):
        """
        Primary ordering key of the policy; lower ranks are served first.
        Processes of equal rank are interchangeable at a quantum boundary.
        """
        return 0

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def _eligible(processes: Sequence[Process], current_time: int) -> List[Process]:
    return [p for p in processes if p is not None and p.is_eligible(current_time)]


class FIFOScheduler(Scheduler):
    """
    Earliest arrival served first; ties go to the smaller PID.
    """

    name = "FIFO"

    def rank(self, process: Process) -> int:
        return process.start_time

    def next_process(self, processes: Sequence[Process], current_time: int) -> Optional[Process]:
        ready = _eligible(processes, current_time)
        if not ready:
            return None
        return min(ready, key=lambda p: (p.start_time, p.pid))


class PriorityScheduler(Scheduler):
    """
    Preemptive priority: the highest numeric priority wins, then the earlier
    arrival, then the smaller PID.
    """

    name = "PRIOP"

    def rank(self, process: Process) -> int:
        return -process.priority

    def next_process(self, processes: Sequence[Process], current_time: int) -> Optional[Process]:
        ready = _eligible(processes, current_time)
        if not ready:
            return None
        return min(ready, key=lambda p: (-p.priority, p.start_time, p.pid))


class ShortestRemainingTimeScheduler(Scheduler):
    """
    Shortest Remaining Time First (preemptive SJF).
    """

    name = "SRTF"

    def rank(self, process: Process) -> int:
        return process.remaining

    def next_process(self, processes: Sequence[Process], current_time: int) -> Optional[Process]:
        ready = _eligible(processes, current_time)
        if not ready:
            return None
        # Choose process with smallest remaining time (tie: earlier arrival, then PID).
        return min(ready, key=lambda p: (p.remaining, p.start_time, p.pid))


SCHEDULERS: Dict[str, Type[Scheduler]] = {
    "fifo": FIFOScheduler,
    "fcfs": FIFOScheduler,
    "priop": PriorityScheduler,
    "priority": PriorityScheduler,
    "srtf": ShortestRemainingTimeScheduler,
    "srt": ShortestRemainingTimeScheduler,
}


def get_scheduler(name: str) -> Scheduler:
    """
    Build the scheduler registered under ``name`` (case-insensitive).
    """
    key = (name or "").strip().lower()
    if key not in SCHEDULERS:
        raise ValueError(f"Unknown scheduling algorithm '{name}'")
    return SCHEDULERS[key]()


def algorithm_names() -> List[str]:
    """Canonical names, one per policy, in registry order."""
    names: List[str] = []
    for cls in SCHEDULERS.values():
        if cls.name not in names:
            names.append(cls.name)
    return names
