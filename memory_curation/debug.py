import threading
from typing import List

from memory_curation.schemas import StaypointSegment


class VacationDebugContext:
    """
    Opt-in recorder for segment diagnostics and clustering warnings.

    Recording is a no-op while disabled. Writes go through a lock so one
    context can be shared by concurrent curation runs.
    """

    def __init__(self, enabled: bool = False):
        self._enabled = enabled
        self._segments: List[StaypointSegment] = []
        self._warnings: List[str] = []
        self._lock = threading.Lock()

    def enable(self) -> None:
        with self._lock:
            self._enabled = True

    def disable(self) -> None:
        with self._lock:
            self._enabled = False
            self._segments = []
            self._warnings = []

    def reset(self) -> None:
        with self._lock:
            self._segments = []
            self._warnings = []

    def is_enabled(self) -> bool:
        return self._enabled

    def record_segment(self, segment: StaypointSegment) -> None:
        with self._lock:
            if not self._enabled:
                return
            self._segments.append(segment)

    def record_warning(self, message: str) -> None:
        with self._lock:
            if not self._enabled or message in self._warnings:
                return
            self._warnings.append(message)

    def get_segments(self) -> List[StaypointSegment]:
        with self._lock:
            return list(self._segments)

    def get_warnings(self) -> List[str]:
        with self._lock:
            return list(self._warnings)

    def format_segment_rows(self) -> List[List[str]]:
        """Rows for the offline segment table: start, end, away days, members, centers, radius, density."""
        return [
            [
                segment.start_date,
                segment.end_date,
                str(segment.away_days),
                str(segment.members),
                str(segment.center_count),
                f"{segment.radius_km:.1f}",
                f"{segment.density:.2f}",
            ]
            for segment in self.get_segments()
        ]
