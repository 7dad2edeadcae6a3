import pytest

from ticksim.algorithms import (
    FIFOScheduler,
    PriorityScheduler,
    ShortestRemainingTimeScheduler,
    get_scheduler,
    algorithm_names,
)
from ticksim.models import Process


def _procs():
    return [
        Process("P1", start_time=0, duration=5, priority=2),
        Process("P2", start_time=1, duration=3, priority=1),
        Process("P3", start_time=2, duration=8, priority=3),
    ]


def _finish(p: Process) -> Process:
    while not p.completed:
        p.execute_tick()
    return p


def test_fifo_earliest_arrival():
    procs = _procs()
    assert FIFOScheduler().next_process(procs, 5).pid == "P1"


def test_fifo_tie_broken_by_pid():
    procs = [
        Process("P2", start_time=0, duration=1, priority=9),
        Process("P1", start_time=0, duration=7, priority=0),
    ]
    assert FIFOScheduler().next_process(procs, 0).pid == "P1"


def test_fifo_skips_completed_and_not_arrived():
    procs = _procs()
    _finish(procs[0])
    scheduler = FIFOScheduler()
    assert scheduler.next_process(procs, 0) is None
    assert scheduler.next_process(procs, 1).pid == "P2"


def test_priority_highest_wins_regardless_of_arrival():
    procs = _procs()
    assert PriorityScheduler().next_process(procs, 1).pid == "P1"
    assert PriorityScheduler().next_process(procs, 2).pid == "P3"


def test_priority_ties_by_start_then_pid():
    procs = [
        Process("B", start_time=1, duration=2, priority=4),
        Process("C", start_time=0, duration=2, priority=4),
        Process("A", start_time=1, duration=2, priority=4),
    ]
    scheduler = PriorityScheduler()
    assert scheduler.next_process(procs, 3).pid == "C"
    _finish(procs[1])
    assert scheduler.next_process(procs, 3).pid == "A"


def test_srtf_minimal_remaining():
    procs = _procs()
    procs[0].execute_tick()
    procs[0].execute_tick()
    scheduler = ShortestRemainingTimeScheduler()
    # P1 has 3 left, P2 has 3 left but arrived later, P3 has 8
    assert scheduler.next_process(procs, 2).pid == "P1"
    procs[0].execute_tick()
    assert scheduler.next_process(procs, 2).pid == "P1"
    procs[1].execute_tick()
    procs[1].execute_tick()
    assert scheduler.next_process(procs, 2).pid == "P2"


def test_srtf_tie_by_pid():
    procs = [
        Process("Y", start_time=0, duration=3),
        Process("X", start_time=0, duration=3),
    ]
    assert ShortestRemainingTimeScheduler().next_process(procs, 0).pid == "X"


@pytest.mark.parametrize("scheduler", [FIFOScheduler(), PriorityScheduler(), ShortestRemainingTimeScheduler()])
def test_idle_when_nothing_eligible(scheduler):
    assert scheduler.next_process([], 0) is None
    procs = [_finish(p) for p in _procs()]
    assert scheduler.next_process(procs, 10) is None
    assert scheduler.next_process([Process("late", start_time=5, duration=1)], 4) is None


@pytest.mark.parametrize("scheduler", [FIFOScheduler(), PriorityScheduler(), ShortestRemainingTimeScheduler()])
def test_selection_is_pure(scheduler):
    procs = _procs()
    before = [p.snapshot() for p in procs]
    first = scheduler.next_process(procs, 3)
    assert scheduler.next_process(procs, 3) is first
    assert [p.snapshot() for p in procs] == before


def test_get_scheduler_is_case_insensitive():
    assert isinstance(get_scheduler("FIFO"), FIFOScheduler)
    assert isinstance(get_scheduler("Priop"), PriorityScheduler)
    assert isinstance(get_scheduler("srtf"), ShortestRemainingTimeScheduler)


def test_get_scheduler_unknown():
    with pytest.raises(ValueError):
        get_scheduler("lottery")


def test_algorithm_names():
    assert algorithm_names() == ["FIFO", "PRIOP", "SRTF"]


@pytest.mark.parametrize("scheduler", [FIFOScheduler(), PriorityScheduler(), ShortestRemainingTimeScheduler()])
def test_selected_process_has_lowest_rank(scheduler):
    procs = _procs()
    ready = [p for p in procs if p.is_eligible(3)]
    chosen = scheduler.next_process(procs, 3)
    assert scheduler.rank(chosen) == min(scheduler.rank(p) for p in ready)


def test_rank_keys():
    p = Process("P1", start_time=4, duration=5, priority=2)
    p.execute_tick()
    assert FIFOScheduler().rank(p) == 4
    assert PriorityScheduler().rank(p) == -2
    assert ShortestRemainingTimeScheduler().rank(p) == 4
