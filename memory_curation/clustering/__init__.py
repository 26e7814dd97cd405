from .day_summary import DaySummaryBuilder
from .geo import count_centers, distance_km
from .segments import VacationSegmentAssembler
from .staypoints import StaypointDetector

__all__ = ["DaySummaryBuilder", "StaypointDetector", "VacationSegmentAssembler", "count_centers", "distance_km"]
