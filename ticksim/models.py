from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


IDLE = "idle"


class ProcessState(str, Enum):
    NEW = "NEW"
    READY = "READY"
    RUNNING = "RUNNING"
    WAITING = "WAITING"
    TERMINATED = "TERMINATED"


class TimelineState(str, Enum):
    RUNNING = "running"
    WAITING = "waiting"
    TERMINATED = "terminated"


class ControllerPhase(str, Enum):
    IDLE = "IDLE"
    SWITCHING = "SWITCHING"
    RUNNING = "RUNNING"
    FINISHED = "FINISHED"


@dataclass
class Process:
    """
    Mutable execution state of one schedulable unit.

    Only the controller's tick handler should call execute_tick/wait_tick.
    """

    pid: str
    start_time: int
    duration: int
    priority: int = 0
    color: int = 0
    run_time: int = 0
    wait_time: int = 0
    state: ProcessState = ProcessState.NEW

    def __post_init__(self) -> None:
        if not self.pid:
            raise ValueError("Process id must be a non-empty string")
        if self.duration <= 0:
            raise ValueError(f"Process {self.pid}: duration must be > 0 (got {self.duration})")
        if self.start_time < 0:
            raise ValueError(f"Process {self.pid}: start_time must be >= 0 (got {self.start_time})")

    @property
    def completed(self) -> bool:
        return self.run_time >= self.duration

    @property
    def remaining(self) -> int:
        return max(0, self.duration - self.run_time)

    def has_arrived(self, time: int) -> bool:
        return self.start_time <= time

    def is_eligible(self, time: int) -> bool:
        """Arrived and not yet terminated."""
        return self.has_arrived(time) and not self.completed

    def execute_tick(self) -> None:
        if self.completed:
            return
        self.run_time += 1
        if self.run_time >= self.duration:
            self.state = ProcessState.TERMINATED
        else:
            self.state = ProcessState.RUNNING

    def wait_tick(self) -> None:
        if self.completed:
            return
        self.wait_time += 1
        self.state = ProcessState.WAITING

    def reset(self) -> None:
        self.run_time = 0
        self.wait_time = 0
        self.state = ProcessState.NEW

    def snapshot(self) -> Dict[str, object]:
        """
        Fixed key/value view of the process for log and UI consumers.
        """
        return {
            "pid": self.pid,
            "start_time": self.start_time,
            "duration": self.duration,
            "priority": self.priority,
            "run_time": self.run_time,
            "wait_time": self.wait_time,
            "remaining": self.remaining,
            "state": self.state.value,
            "completed": self.completed,
        }


@dataclass
class SchedulerConfig:
    algorithm_name: str
    quantum: int
    processes: List[Process] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.quantum <= 0:
            raise ValueError(f"Quantum must be a positive integer (got {self.quantum})")


@dataclass(frozen=True)
class TimelineEvent:
    """
    One half-open interval [start, end) during which a process held a state.
    """

    pid: str
    start: int
    end: int
    state: TimelineState

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class TickRecord:
    time: int
    pid: str
    run_time: int
    duration: int
    quantum_progress: int

    @property
    def idle(self) -> bool:
        return self.pid == IDLE


@dataclass(frozen=True)
class ContextSwitch:
    time: int
    previous: Optional[str]
    selected: Optional[str]


@dataclass
class ProcessMetrics:
    pid: str
    arrival_time: int
    duration: int
    start_time: Optional[int]
    completion_time: Optional[int]
    waiting_time: int
    turnaround_time: Optional[int]
    response_time: Optional[int]
    priority: int = 0


@dataclass
class SystemMetrics:
    cpu_busy_time: int
    makespan: int
    throughput: float
    cpu_utilization: float
    starvation_count: int = 0
    context_switches: int = 0
