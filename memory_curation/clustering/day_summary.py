from typing import Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

from memory_curation.config import Settings
from memory_curation.logger_config import logger
from memory_curation.schemas import DaySummary, HomeLocation, MediaRecord
from .geo import centroid, count_centers, distance_km, max_radius_km, media_coords, path_length_km
from .staypoints import StaypointDetector, activity_density


class DaySummaryBuilder:
    def __init__(
        self,
        staypoint_detector: Optional[StaypointDetector] = None,
        timezone: str = "UTC",
        center_merge_radius_km: float = 0.5,
    ):
        if center_merge_radius_km <= 0.0:
            raise ValueError("center_merge_radius_km must be > 0.")

        self.staypoint_detector = staypoint_detector or StaypointDetector()
        self.timezone = ZoneInfo(timezone)
        self.center_merge_radius_km = center_merge_radius_km

    @classmethod
    def from_settings(cls, settings=Settings, staypoint_detector: Optional[StaypointDetector] = None) -> "DaySummaryBuilder":
        return cls(
            staypoint_detector=staypoint_detector,
            timezone=settings.TIMEZONE,
            center_merge_radius_km=settings.CENTER_MERGE_RADIUS_KM,
        )

    def day_key(self, media: MediaRecord) -> str:
        return media.taken_at.astimezone(self.timezone).date().isoformat()

    def build(self, media: Iterable[MediaRecord], home: Optional[HomeLocation] = None) -> Dict[str, DaySummary]:
        """
        Groups media by local calendar day. Keys come back in ascending order.
        Media without GPS stay in the member list of their day.
        """
        groups: Dict[str, List[MediaRecord]] = {}
        for item in media:
            groups.setdefault(self.day_key(item), []).append(item)

        summaries = {}
        for key in sorted(groups):
            summaries[key] = self._summarize(key, groups[key], home)

        logger.info(f"Built {len(summaries)} day summaries")
        return summaries

    def _summarize(self, key: str, members: List[MediaRecord], home: Optional[HomeLocation]) -> DaySummary:
        members = sorted(members, key=lambda m: m.taken_at)
        gps_members = [m for m in members if m.has_gps]
        points = media_coords(gps_members)

        if not points:
            # No spatial data: keep the day, report zero radius and density
            return DaySummary(day=key, members=members, is_away=False)

        center = centroid(points)
        staypoints = self.staypoint_detector.detect(gps_members)
        span = (gps_members[-1].taken_at - gps_members[0].taken_at).total_seconds()

        home_distance = None
        is_away = True
        if home is not None:
            home_distance = distance_km((center.lat, center.lon), (home.lat, home.lon))
            is_away = home_distance > home.radius_km

        return DaySummary(
            day=key,
            members=members,
            centroid=center,
            staypoints=staypoints,
            center_count=count_centers([(s.lat, s.lon) for s in staypoints], self.center_merge_radius_km),
            radius_km=max_radius_km(points, center),
            density=activity_density(len(gps_members), span),
            travel_km=path_length_km(points),
            gps_count=len(gps_members),
            distance_from_home_km=home_distance,
            is_away=is_away,
        )
