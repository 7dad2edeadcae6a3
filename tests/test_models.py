import pytest

from ticksim.models import Process, ProcessState, SchedulerConfig


def test_execute_until_terminated():
    p = Process("P1", start_time=0, duration=2)
    assert p.state == ProcessState.NEW
    p.execute_tick()
    assert (p.run_time, p.state, p.completed) == (1, ProcessState.RUNNING, False)
    p.execute_tick()
    assert (p.run_time, p.state, p.completed) == (2, ProcessState.TERMINATED, True)


def test_no_mutation_after_termination():
    p = Process("P1", start_time=0, duration=1)
    p.wait_tick()
    p.execute_tick()
    p.execute_tick()
    p.wait_tick()
    assert p.run_time == 1
    assert p.wait_time == 1
    assert p.state == ProcessState.TERMINATED


def test_remaining_and_eligibility():
    p = Process("P1", start_time=3, duration=2)
    assert p.remaining == 2
    assert not p.is_eligible(2)
    assert p.is_eligible(3)
    p.execute_tick()
    p.execute_tick()
    assert p.remaining == 0
    assert not p.is_eligible(10)


def test_reset():
    p = Process("P1", start_time=0, duration=1)
    p.wait_tick()
    p.execute_tick()
    p.reset()
    assert (p.run_time, p.wait_time, p.state) == (0, 0, ProcessState.NEW)


def test_snapshot_keys():
    p = Process("P1", start_time=1, duration=4, priority=3)
    p.wait_tick()
    snap = p.snapshot()
    assert snap == {
        "pid": "P1",
        "start_time": 1,
        "duration": 4,
        "priority": 3,
        "run_time": 0,
        "wait_time": 1,
        "remaining": 4,
        "state": "WAITING",
        "completed": False,
    }


@pytest.mark.parametrize(
    "kwargs",
    [
        {"pid": "", "start_time": 0, "duration": 1},
        {"pid": "P1", "start_time": 0, "duration": 0},
        {"pid": "P1", "start_time": -1, "duration": 1},
    ],
)
def test_invalid_process(kwargs):
    with pytest.raises(ValueError):
        Process(**kwargs)


def test_quantum_must_be_positive():
    with pytest.raises(ValueError):
        SchedulerConfig("FIFO", 0)
