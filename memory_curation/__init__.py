from .debug import VacationDebugContext
from .pipeline import MemoryCurationEngine, generate_time_title
from .schemas import (
    DaySummary,
    HomeLocation,
    MediaRecord,
    MemoryEpisode,
    SelectionResult,
    SelectionTelemetry,
    StaypointSegment,
    VacationSelectionOptions,
)

__all__ = [
    "MemoryCurationEngine",
    "VacationDebugContext",
    "generate_time_title",
    "DaySummary",
    "HomeLocation",
    "MediaRecord",
    "MemoryEpisode",
    "SelectionResult",
    "SelectionTelemetry",
    "StaypointSegment",
    "VacationSelectionOptions",
]
