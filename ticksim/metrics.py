from __future__ import annotations

from typing import List, Sequence

from .models import ContextSwitch, Process, ProcessMetrics, SystemMetrics, TimelineState
from .timeline import TimelineRecorder


def compute_process_metrics(processes: Sequence[Process], timeline: TimelineRecorder) -> List[ProcessMetrics]:
    """
    Derive per-process metrics from the recorded timeline.

    Processes that never ran (or never finished) keep None for the times
    that cannot be known yet.
    """
    metrics: List[ProcessMetrics] = []
    for p in processes:
        spans = timeline.events_for(p.pid)
        first_run = next((e.start for e in spans if e.state == TimelineState.RUNNING), None)
        terminated = next((e for e in spans if e.state == TimelineState.TERMINATED), None)

        completion_time = terminated.end if terminated is not None else None
        turnaround_time = completion_time - p.start_time if completion_time is not None else None
        response_time = first_run - p.start_time if first_run is not None else None

        metrics.append(
            ProcessMetrics(
                pid=p.pid,
                arrival_time=p.start_time,
                duration=p.duration,
                start_time=first_run,
                completion_time=completion_time,
                waiting_time=p.wait_time,
                turnaround_time=turnaround_time,
                response_time=response_time,
                priority=p.priority,
            )
        )
    return metrics


def compute_system_metrics(
    processes: List[ProcessMetrics],
    timeline: TimelineRecorder,
    context_switches: Sequence[ContextSwitch] = (),
) -> SystemMetrics:
    """
    Compute throughput and CPU utilization given per-process metrics and the
    running spans of the timeline.
    """
    finished = [p for p in processes if p.completion_time is not None]
    if not finished:
        return SystemMetrics(
            cpu_busy_time=0,
            makespan=0,
            throughput=0.0,
            cpu_utilization=0.0,
            context_switches=len(context_switches),
        )

    makespan = max(p.completion_time for p in finished)
    cpu_busy_time = sum(e.length for e in timeline.events(TimelineState.RUNNING))

    throughput = len(finished) / makespan if makespan > 0 else 0.0
    cpu_utilization = cpu_busy_time / makespan if makespan > 0 else 0.0

    # Processes waiting more than twice the average count as starved.
    avg_wait = sum(p.waiting_time for p in processes) / len(processes)
    starvation_count = sum(1 for p in processes if p.waiting_time > 2 * avg_wait)

    return SystemMetrics(
        cpu_busy_time=cpu_busy_time,
        makespan=makespan,
        throughput=throughput,
        cpu_utilization=cpu_utilization,
        starvation_count=starvation_count,
        context_switches=len(context_switches),
    )


def summarize_process_metrics(processes: List[ProcessMetrics]) -> dict:
    """
    Return averages of the key per-process metrics for quick comparison.
    """
    finished = [p for p in processes if p.completion_time is not None]
    if not finished:
        return {"avg_waiting": 0.0, "avg_turnaround": 0.0, "avg_response": 0.0}

    n = len(finished)
    return {
        "avg_waiting": sum(p.waiting_time for p in finished) / n,
        "avg_turnaround": sum(p.turnaround_time for p in finished) / n,
        "avg_response": sum(p.response_time for p in finished) / n,
    }
