import math
from typing import Dict, List, Optional

from memory_curation.clustering.geo import distance_km
from memory_curation.schemas import (
    DaySummary,
    Derived,
    HomeLocation,
    MediaRecord,
    VacationSelectionOptions,
)

CORE_DAY = "core"
PERIPHERAL_DAY = "peripheral"


def default_per_day_cap(options: VacationSelectionOptions, run_days: int) -> int:
    if run_days <= 0:
        return max(1, options.max_per_day)
    share = math.ceil(options.target_total / run_days)
    return max(1, min(options.max_per_day, share))


def day_category(summary: DaySummary, home: Optional[HomeLocation]) -> str:
    """A day is peripheral when it stays inside the home radius or has no location."""
    if summary.centroid is None:
        return PERIPHERAL_DAY
    if home is None:
        return CORE_DAY

    distance = distance_km((summary.centroid.lat, summary.centroid.lon), (home.lat, home.lon))
    return PERIPHERAL_DAY if distance <= home.radius_km else CORE_DAY


def quota_spacing(options: VacationSelectionOptions, density: float) -> int:
    """
    Minimum gap between two picks of the same day. Busy days (density above
    the reference) get a proportionally shorter gap, never below the floor.
    """
    base = options.min_spacing_seconds
    if base <= 0:
        return 0

    scale = 1.0
    if density > 0.0:
        scale = min(1.0, options.density_reference / density)

    spacing = int(round(base * scale))
    return max(spacing, min(options.min_spacing_floor_seconds, base))


def compute_derived(
    candidates: Dict[str, List[MediaRecord]],
    summaries: Dict[str, DaySummary],
    options: VacationSelectionOptions,
    home: Optional[HomeLocation] = None,
) -> Derived:
    unique_days = sorted(day for day, members in candidates.items() if members)
    run_days = len(unique_days)
    default_cap = default_per_day_cap(options, run_days)

    day_caps: Dict[str, int] = {}
    day_categories: Dict[str, str] = {}
    spacing: Dict[str, int] = {}

    for day in unique_days:
        summary = summaries[day]
        category = day_category(summary, home)
        day_categories[day] = category

        if day in options.day_caps:
            day_caps[day] = options.day_caps[day]
        elif category == CORE_DAY:
            day_caps[day] = min(options.max_per_day, default_cap + options.core_day_bonus)
        else:
            day_caps[day] = max(1, default_cap - options.peripheral_day_penalty)

        spacing[day] = quota_spacing(options, summary.density)

    return Derived(
        run_days=run_days,
        default_per_day_cap=default_cap,
        unique_days=unique_days,
        quota_spacing_seconds=spacing,
        day_caps=day_caps,
        day_categories=day_categories,
    )
