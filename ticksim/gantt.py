from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import TimelineEvent, TimelineState

RUN_CHAR = "#"
WAIT_CHAR = "."


def _rows(events: Sequence[TimelineEvent], until: Optional[int]) -> tuple[List[str], Dict[str, List[str]], int]:
    pids: List[str] = []
    for ev in sorted(events, key=lambda e: (e.start, e.pid)):
        if ev.pid not in pids:
            pids.append(ev.pid)

    end = max((e.end for e in events), default=0)
    if until is not None:
        end = until

    cells: Dict[str, List[str]] = {pid: [" "] * end for pid in pids}
    # Running wins over waiting when both cover a tick.
    for state, char in ((TimelineState.WAITING, WAIT_CHAR), (TimelineState.RUNNING, RUN_CHAR)):
        for ev in events:
            if ev.state != state:
                continue
            for t in range(ev.start, min(ev.end, end)):
                cells[ev.pid][t] = char
    return pids, cells, end


def _time_marks(end: int, width: int) -> str:
    marks = " " * width
    for t in range(0, end + 1, 5):
        marks += f"{t:<5}"
    return marks.rstrip()


def render_gantt(events: Sequence[TimelineEvent], until: Optional[int] = None) -> str:
    """
    Plain-text Gantt chart: one row per process, '#' running, '.' waiting.
    """
    if not events:
        return "(no execution)"

    pids, cells, end = _rows(events, until)
    width = max(len(pid) for pid in pids) + 1

    lines = ["Gantt Chart:"]
    for pid in pids:
        lines.append(f"{pid:<{width}}|{''.join(cells[pid])}|")
    lines.append(_time_marks(end, width + 1))
    return "\n".join(lines)


def build_rich_gantt(events: Sequence[TimelineEvent]) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.
    """
    if not events:
        panel = Panel("No execution", title="Gantt Chart")
        return panel, ""

    colors = ["red", "green", "yellow", "blue", "magenta", "cyan"]
    pids, cells, end = _rows(events, None)
    pid_to_color = {pid: colors[idx % len(colors)] for idx, pid in enumerate(pids)}
    width = max(len(pid) for pid in pids) + 1

    table = Table.grid(padding=(0, 0))
    for pid in pids:
        row = Text(f"{pid:<{width}}", style="bold")
        for cell in cells[pid]:
            if cell == RUN_CHAR:
                row.append(" ", style=f"on {pid_to_color[pid]}")
            elif cell == WAIT_CHAR:
                row.append(WAIT_CHAR, style="dim")
            else:
                row.append(" ")
        table.add_row(row)

    panel = Panel.fit(table, title="Gantt Chart")
    return panel, _time_marks(end, width + 2)
