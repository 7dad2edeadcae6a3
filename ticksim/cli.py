from __future__ import annotations

import argparse
import copy
import logging
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .algorithms import algorithm_names
from .clock import SystemClock
from .controller import SimController
from .gantt import build_rich_gantt
from .metrics import compute_process_metrics, compute_system_metrics, summarize_process_metrics
from .models import SchedulerConfig, TickRecord
from .workload_io import load_config

DEFAULT_MAX_TICKS = 10_000


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ticksim",
        description="Tick-driven CPU scheduling simulator (FIFO, PRIOP, SRTF).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log context switches and every tick.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Simulate a configuration tick by tick.")
    run_parser.add_argument(
        "--config",
        "-c",
        required=True,
        help="Path to a .txt, .json or .csv configuration file.",
    )
    run_parser.add_argument(
        "--algorithm",
        "-a",
        default=None,
        help="Override the algorithm from the file (fifo, priop, srtf).",
    )
    run_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help="Override the quantum from the file.",
    )
    run_parser.add_argument(
        "--auto",
        action="store_true",
        help="Drive the simulation with the background clock instead of manual steps.",
    )
    run_parser.add_argument(
        "--tick-ms",
        type=int,
        default=100,
        help="Milliseconds between ticks with --auto (default: 100).",
    )
    run_parser.add_argument(
        "--max-ticks",
        type=int,
        default=DEFAULT_MAX_TICKS,
        help=f"Give up after this many ticks (default: {DEFAULT_MAX_TICKS}).",
    )
    run_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print the per-tick log.",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run several algorithms on the same configuration and compare average metrics.",
    )
    compare_parser.add_argument(
        "--config",
        "-c",
        required=True,
        help="Path to a .txt, .json or .csv configuration file.",
    )
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=algorithm_names(),
        help="Algorithms to compare (default: all).",
    )
    compare_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help="Override the quantum from the file.",
    )

    return parser


def configure_logging(verbose: bool, console: Console) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _tick_printer(console: Console):
    def print_record(record: TickRecord) -> None:
        if record.idle:
            console.print(f"[dim]t={record.time:3d}: CPU idle[/dim]")
            return
        console.print(
            f"t={record.time:3d}: [green]{record.pid}[/green] "
            f"run {record.run_time}/{record.duration} "
            f"[dim](quantum {record.quantum_progress})[/dim]"
        )

    return print_record


def simulate(config: SchedulerConfig, max_ticks: int) -> SimController:
    """
    Run a configuration to completion with manual stepping.
    """
    controller = SimController(SystemClock(), config)
    controller.run_until_finished(max_ticks)
    return controller


def _print_result(controller: SimController, console: Console) -> None:
    console.print(f"[bold]Algorithm:[/bold] {controller.scheduler.name}")
    console.print(f"[bold]Quantum:[/bold] {controller.config.quantum}")
    console.print(f"[bold]Finished:[/bold] {controller.is_finished} at t={controller.current_time}")
    console.print()

    panel, time_marks = build_rich_gantt(controller.timeline.events())
    console.print(panel)
    if time_marks:
        console.print(time_marks)

    console.print()

    headers = [
        "PID",
        "Arrive",
        "Duration",
        "Start",
        "Complete",
        "Wait",
        "Turnaround",
        "Response",
        "Priority",
    ]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"PID", "Priority"} else "right"
        proc_table.add_column(h, justify=justify)

    process_metrics = compute_process_metrics(controller.processes, controller.timeline)
    for p in process_metrics:
        proc_table.add_row(
            p.pid,
            str(p.arrival_time),
            str(p.duration),
            _fmt(p.start_time),
            _fmt(p.completion_time),
            str(p.waiting_time),
            _fmt(p.turnaround_time),
            _fmt(p.response_time),
            str(p.priority),
        )

    console.print(proc_table)
    console.print()

    summary = summarize_process_metrics(process_metrics)
    system = compute_system_metrics(process_metrics, controller.timeline, controller.context_switches)

    sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")

    sys_table.add_row("Avg waiting", f"{summary['avg_waiting']:.2f}")
    sys_table.add_row("Avg turnaround", f"{summary['avg_turnaround']:.2f}")
    sys_table.add_row("Avg response", f"{summary['avg_response']:.2f}")
    sys_table.add_row("Throughput (proc/tick)", f"{system.throughput:.3f}")
    sys_table.add_row("CPU utilization", f"{system.cpu_utilization*100:.1f}%")
    sys_table.add_row("Context switches", str(system.context_switches))
    sys_table.add_row("Starvation count", str(system.starvation_count))

    console.print(sys_table)


def _fmt(value: Optional[int]) -> str:
    return "-" if value is None else str(value)


def _run(args: argparse.Namespace, console: Console) -> int:
    config = load_config(args.config, algorithm=args.algorithm, quantum=args.quantum)
    clock = SystemClock(args.tick_ms)
    controller = SimController(clock, config)
    if not args.quiet:
        controller.add_listener(_tick_printer(console))

    if args.auto:
        controller.start(max_ticks=args.max_ticks)
        try:
            while not controller.wait_finished(0.1):
                if not clock.is_running:
                    console.print(f"[yellow]Stopped after {args.max_ticks} ticks.[/yellow]")
                    break
        except KeyboardInterrupt:
            console.print("[yellow]Simulation interrupted.[/yellow]")
        finally:
            controller.stop()
    else:
        controller.run_until_finished(args.max_ticks)

    console.print()
    _print_result(controller, console)
    return 0


def _compare(args: argparse.Namespace, console: Console) -> int:
    config = load_config(args.config, quantum=args.quantum)

    summary_table = Table(title=f"Algorithm comparison: {args.config}", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Ticks", justify="right")
    summary_table.add_column("Switches", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Avg response", justify="right")

    for alg in args.algorithms:
        run_config = SchedulerConfig(alg, config.quantum, copy.deepcopy(config.processes))
        controller = simulate(run_config, DEFAULT_MAX_TICKS)
        summary = summarize_process_metrics(compute_process_metrics(controller.processes, controller.timeline))
        summary_table.add_row(
            controller.scheduler.name,
            str(config.quantum),
            str(controller.current_time),
            str(len(controller.context_switches)),
            f"{summary['avg_waiting']:.2f}",
            f"{summary['avg_turnaround']:.2f}",
            f"{summary['avg_response']:.2f}",
        )

    console.print(summary_table)
    return 0


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    console = Console()
    configure_logging(args.verbose, console)

    try:
        if args.command == "run":
            return _run(args, console)
        if args.command == "compare":
            return _compare(args, console)
    except (OSError, ValueError) as exc:
        console.print(f"[red]Error: {exc}[/red]")
        return 2

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
