from __future__ import annotations

import logging
from typing import List, Optional

from .models import TimelineEvent, TimelineState

logger = logging.getLogger(__name__)


class TimelineRecorder:
    """
    Accumulates Gantt events, merging touching or overlapping spans of the
    same process and state into a single event.
    """

    def __init__(self) -> None:
        self._events: List[TimelineEvent] = []
        self._dropped = 0

    @property
    def dropped(self) -> int:
        """Number of zero-length or inverted intervals that were ignored."""
        return self._dropped

    def record(self, pid: str, start: int, end: int, state) -> Optional[TimelineEvent]:
        state = TimelineState(state)
        if end <= start:
            self._dropped += 1
            logger.debug("Dropped invalid interval %s [%d, %d) %s", pid, start, end, state.value)
            return None

        # Every stored span of the pair that touches the new one collapses into
        # their union, kept at the slot of the earliest recorded of them.
        touching = [
            i
            for i, e in enumerate(self._events)
            if e.pid == pid and e.state == state and e.start <= end and start <= e.end
        ]
        if not touching:
            event = TimelineEvent(pid, start, end, state)
            self._events.append(event)
            return event

        merged = TimelineEvent(
            pid,
            min([start] + [self._events[i].start for i in touching]),
            max([end] + [self._events[i].end for i in touching]),
            state,
        )
        self._events[touching[0]] = merged
        for i in reversed(touching[1:]):
            del self._events[i]
        return merged

    def events(self, state=None) -> List[TimelineEvent]:
        """
        Stored events ordered by start time; events sharing a start time keep
        insertion order.
        """
        events = self._events
        if state is not None:
            wanted = TimelineState(state)
            events = [e for e in events if e.state == wanted]
        return sorted(events, key=lambda e: e.start)

    def events_for(self, pid: str) -> List[TimelineEvent]:
        return [e for e in self.events() if e.pid == pid]

    def clear(self) -> None:
        self._events.clear()
        self._dropped = 0

    def __len__(self) -> int:
        return len(self._events)
