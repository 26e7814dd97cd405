from datetime import date
from typing import Dict, List, Optional

from memory_curation.config import Settings
from memory_curation.debug import VacationDebugContext
from memory_curation.logger_config import logger
from memory_curation.schemas import DaySummary, HomeLocation, StaypointSegment
from .geo import centroid, count_centers, distance_km, max_radius_km, media_coords
from .staypoints import MIN_ACTIVE_HOURS


class VacationSegmentAssembler:
    """
    Turns day summaries into trip segments: runs of consecutive away days.
    Days without GPS that sit between two away days bridge the run.
    """

    def __init__(
        self,
        max_gap_days: int = 1,
        min_segment_members: int = 3,
        center_merge_radius_km: float = 0.5,
        debug_context: Optional[VacationDebugContext] = None,
    ):
        if max_gap_days < 1:
            raise ValueError("max_gap_days must be >= 1.")
        if min_segment_members < 1:
            raise ValueError("min_segment_members must be >= 1.")
        if center_merge_radius_km <= 0.0:
            raise ValueError("center_merge_radius_km must be > 0.")

        self.max_gap_days = max_gap_days
        self.min_segment_members = min_segment_members
        self.center_merge_radius_km = center_merge_radius_km
        self.debug_context = debug_context

    @classmethod
    def from_settings(cls, settings=Settings, debug_context: Optional[VacationDebugContext] = None) -> "VacationSegmentAssembler":
        return cls(
            max_gap_days=settings.SEGMENT_MAX_GAP_DAYS,
            min_segment_members=settings.SEGMENT_MIN_MEMBERS,
            center_merge_radius_km=settings.CENTER_MERGE_RADIUS_KM,
            debug_context=debug_context,
        )

    def assemble(self, days: Dict[str, DaySummary], home: Optional[HomeLocation] = None) -> List[StaypointSegment]:
        if not days:
            return []

        keys = sorted(days)
        away = {key: self._is_away(days[key], home) for key in keys}

        # Bridge GPS-less days that are surrounded by away days
        in_run = dict(away)
        for i in range(1, len(keys) - 1):
            key = keys[i]
            if away[key] or days[key].centroid is not None:
                continue
            if away[keys[i - 1]] and away[keys[i + 1]]:
                in_run[key] = True

        runs: List[List[str]] = []
        run: List[str] = []
        for key in keys:
            if not in_run[key]:
                if run:
                    runs.append(run)
                run = []
                continue

            if run and self._day_gap(run[-1], key) > self.max_gap_days:
                runs.append(run)
                run = []

            run.append(key)

        if run:
            runs.append(run)

        segments = [self._build_segment(run, days, away) for run in runs]
        logger.info(f"Segment assembler: {len(keys)} days -> {len(segments)} segments")
        return segments

    def _is_away(self, summary: DaySummary, home: Optional[HomeLocation]) -> bool:
        if summary.centroid is None:
            return False
        if home is None:
            return True
        distance = distance_km((summary.centroid.lat, summary.centroid.lon), (home.lat, home.lon))
        return distance > home.radius_km

    @staticmethod
    def _day_gap(previous: str, current: str) -> int:
        return (date.fromisoformat(current) - date.fromisoformat(previous)).days

    def _build_segment(self, run: List[str], days: Dict[str, DaySummary], away: Dict[str, bool]) -> StaypointSegment:
        members = [m for key in run for m in days[key].members]
        members.sort(key=lambda m: m.taken_at)
        points = media_coords(members)

        radius = 0.0
        if points:
            radius = max_radius_km(points, centroid(points))

        staypoint_centers = [(s.lat, s.lon) for key in run for s in days[key].staypoints]

        active_hours = 0.0
        for key in run:
            summary = days[key]
            if summary.gps_count > 0 and summary.density > 0.0:
                active_hours += max(MIN_ACTIVE_HOURS, summary.gps_count / summary.density)
        density = len(points) / active_hours if active_hours > 0.0 else 0.0

        sparse = len(members) < self.min_segment_members

        segment = StaypointSegment(
            start=members[0].taken_at,
            end=members[-1].taken_at,
            start_date=run[0],
            end_date=run[-1],
            away_days=sum(1 for key in run if away[key]),
            members=len(members),
            center_count=count_centers(staypoint_centers, self.center_merge_radius_km),
            radius_km=radius,
            density=density,
            day_keys=list(run),
            sparse=sparse,
        )

        if sparse:
            message = (
                f"Sparse segment {segment.start_date}..{segment.end_date}: "
                f"{segment.members} member(s) < {self.min_segment_members}"
            )
            logger.warning(message)
            if self.debug_context is not None:
                self.debug_context.record_warning(message)

        if self.debug_context is not None:
            self.debug_context.record_segment(segment)

        return segment
