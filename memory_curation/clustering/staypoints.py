from datetime import timedelta
from typing import List, Optional, Sequence

from memory_curation.config import Settings
from memory_curation.debug import VacationDebugContext
from memory_curation.logger_config import logger
from memory_curation.schemas import MediaRecord, Staypoint
from .geo import centroid, distance_km, max_radius_km

MIN_ACTIVE_HOURS = 0.25


def activity_density(member_count: int, span_seconds: float) -> float:
    """Members per active hour; short bursts count as a quarter hour."""
    if member_count <= 0:
        return 0.0
    hours = max(MIN_ACTIVE_HOURS, span_seconds / 3600.0)
    return member_count / hours


class StaypointDetector:
    """
    Sequential staypoint detection.

    A cluster grows while the next point stays within radius_km of the
    running centroid and within max_gap_minutes of the previous point.
    It is closed as soon as either bound is broken or the input ends.
    """

    def __init__(
        self,
        radius_km: float = 0.25,
        max_gap_minutes: int = 60,
        min_members: int = 2,
        debug_context: Optional[VacationDebugContext] = None,
    ):
        if radius_km <= 0.0:
            raise ValueError("radius_km must be greater than zero.")
        if max_gap_minutes < 1:
            raise ValueError("max_gap_minutes must be at least one minute.")
        if min_members < 1:
            raise ValueError("min_members must be >= 1.")

        self.radius_km = radius_km
        self.max_gap = timedelta(minutes=max_gap_minutes)
        self.min_members = min_members
        self.debug_context = debug_context

    @classmethod
    def from_settings(cls, settings=Settings, debug_context: Optional[VacationDebugContext] = None) -> "StaypointDetector":
        return cls(
            radius_km=settings.STAYPOINT_RADIUS_KM,
            max_gap_minutes=settings.STAYPOINT_MAX_GAP_MINUTES,
            min_members=settings.STAYPOINT_MIN_MEMBERS,
            debug_context=debug_context,
        )

    def detect(self, members: Sequence[MediaRecord]) -> List[Staypoint]:
        gps_members = sorted((m for m in members if m.has_gps), key=lambda m: m.taken_at)
        if not gps_members:
            return []

        staypoints = []
        current = [gps_members[0]]
        lat_sum = gps_members[0].latitude
        lon_sum = gps_members[0].longitude

        for media in gps_members[1:]:
            center = (lat_sum / len(current), lon_sum / len(current))
            gap = media.taken_at - current[-1].taken_at
            distance = distance_km(center, (media.latitude, media.longitude))

            if distance > self.radius_km or gap > self.max_gap:
                staypoints.append(self._close(current))
                current = []
                lat_sum = 0.0
                lon_sum = 0.0

            current.append(media)
            lat_sum += media.latitude
            lon_sum += media.longitude

        if current:
            staypoints.append(self._close(current))

        return staypoints

    def _close(self, cluster: List[MediaRecord]) -> Staypoint:
        points = [(m.latitude, m.longitude) for m in cluster]
        center = centroid(points)
        start = cluster[0].taken_at
        end = cluster[-1].taken_at
        dwell = int((end - start).total_seconds())
        sparse = len(cluster) < self.min_members

        staypoint = Staypoint(
            lat=center.lat,
            lon=center.lon,
            start=start,
            end=end,
            dwell_seconds=dwell,
            member_count=len(cluster),
            radius_km=max_radius_km(points, center),
            density=activity_density(len(cluster), dwell),
            sparse=sparse,
        )

        if sparse:
            message = (
                f"Sparse staypoint at ({center.lat:.4f}, {center.lon:.4f}) "
                f"{start.isoformat()}: {len(cluster)} member(s) < {self.min_members}"
            )
            logger.debug(message)
            if self.debug_context is not None:
                self.debug_context.record_warning(message)

        return staypoint
