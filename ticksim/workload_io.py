from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Iterable, List, Mapping, Optional

from .models import Process, SchedulerConfig

DEFAULT_ALGORITHM = "FIFO"
DEFAULT_QUANTUM = 2


def load_config(
    path: str | Path,
    algorithm: Optional[str] = None,
    quantum: Optional[int] = None,
) -> SchedulerConfig:
    """
    Load a simulation config from a text, JSON or CSV file.

    ``algorithm`` and ``quantum`` override whatever the file declares.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix in {".txt", ".cfg"}:
        config = parse_config_text(path.read_text(encoding="utf-8"))
    elif suffix == ".json":
        config = _load_json(path)
    elif suffix == ".csv":
        config = SchedulerConfig(DEFAULT_ALGORITHM, DEFAULT_QUANTUM, load_processes(path))
    else:
        raise ValueError(f"Unsupported config format: {suffix} (use .txt, .json or .csv)")

    if algorithm is not None:
        config.algorithm_name = algorithm
    if quantum is not None:
        config = SchedulerConfig(config.algorithm_name, quantum, config.processes)
    return config


def parse_config_text(text: str) -> SchedulerConfig:
    """
    Parse the line-oriented format::

        PRIOP;5
        t01;0;0;4;2
        t02;1;2;3;5

    The header holds ``algorithm;quantum``; each further line describes one
    process as ``id;color;start;duration;priority``.
    """
    lines = [line.strip() for line in text.splitlines()]
    lines = [line for line in lines if line]
    if not lines:
        raise ValueError("Empty configuration")

    header = [part.strip() for part in lines[0].split(";")]
    if len(header) < 2 or not header[0]:
        raise ValueError(f"Invalid configuration header: {lines[0]!r}")
    try:
        quantum = int(header[1])
    except ValueError as exc:
        raise ValueError(f"Invalid quantum in header: {lines[0]!r}") from exc

    processes: List[Process] = []
    for line in lines[1:]:
        parts = [part.strip() for part in line.split(";")]
        if len(parts) < 5:
            raise ValueError(f"Invalid process entry: {line!r}")
        try:
            processes.append(
                Process(
                    pid=parts[0],
                    color=int(parts[1]),
                    start_time=int(parts[2]),
                    duration=int(parts[3]),
                    priority=int(parts[4]),
                )
            )
        except ValueError as exc:
            raise ValueError(f"Invalid process entry: {line!r}") from exc

    _check_unique(processes)
    return SchedulerConfig(header[0], quantum, processes)


def load_processes(path: str | Path) -> List[Process]:
    """
    Load only the process list from a JSON list or a CSV file.
    """
    path = Path(path)
    if path.suffix.lower() == ".json":
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
        if isinstance(raw, Mapping):
            raw = raw.get("processes", [])
        return _processes_from(raw)

    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        return _processes_from(reader)


def _load_json(path: Path) -> SchedulerConfig:
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    if isinstance(raw, Mapping):
        algorithm = str(raw.get("algorithm", DEFAULT_ALGORITHM))
        try:
            quantum = int(raw.get("quantum", DEFAULT_QUANTUM))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid quantum: {raw.get('quantum')!r}") from exc
        return SchedulerConfig(algorithm, quantum, _processes_from(raw.get("processes", [])))

    if not isinstance(raw, list):
        raise ValueError("JSON config must be an object or a list of process objects")
    return SchedulerConfig(DEFAULT_ALGORITHM, DEFAULT_QUANTUM, _processes_from(raw))


def _processes_from(entries: Iterable) -> List[Process]:
    processes = [_process_from_mapping(entry) for entry in entries]
    _check_unique(processes)
    return processes


def _process_from_mapping(mapping) -> Process:
    try:
        pid = str(mapping["pid"]).strip()
        start_time = int(mapping.get("start_time", mapping.get("arrival_time")))
        duration = int(mapping.get("duration", mapping.get("burst_time")))
        priority = _optional_int(mapping.get("priority"))
        color = _optional_int(mapping.get("color"))
        return Process(pid=pid, start_time=start_time, duration=duration, priority=priority, color=color)
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ValueError(f"Invalid process entry: {mapping!r}") from exc


def _optional_int(value) -> int:
    return int(value) if value not in (None, "") else 0


def _check_unique(processes: List[Process]) -> None:
    seen = set()
    for p in processes:
        if p.pid in seen:
            raise ValueError(f"Duplicate process id: {p.pid}")
        seen.add(p.pid)
