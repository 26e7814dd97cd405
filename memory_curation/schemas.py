from typing import List, Optional, Dict, Any
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from memory_curation.config import Settings

# --- GEO ---
class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)


class HomeLocation(GeoPoint):
    radius_km: float = Field(default=Settings.HOME_RADIUS_KM, gt=0.0)


# --- INPUT MODEL (annotated by the ingestion pipeline) ---
class MediaRecord(BaseModel):
    id: str
    path: str
    taken_at: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    phash: Optional[str] = None
    is_video: bool = False

    # Face signals
    faces_count: Optional[int] = None
    largest_face_coverage: Optional[float] = None

    # Raw quality measurements
    width: Optional[int] = None
    height: Optional[int] = None
    sharpness: Optional[float] = None
    iso: Optional[int] = None
    brightness: Optional[float] = None
    contrast: Optional[float] = None
    quality_clipping: Optional[float] = None

    # Aggregated quality (written by MediaQualityAggregator)
    quality_resolution: Optional[float] = None
    quality_sharpness: Optional[float] = None
    quality_noise: Optional[float] = None
    quality_exposure: Optional[float] = None
    quality_score: Optional[float] = None
    low_quality: bool = False

    index_log: List[str] = Field(default_factory=list)

    @field_validator("taken_at")
    @classmethod
    def _ensure_timezone(cls, value: datetime) -> datetime:
        # Naive timestamps are treated as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def has_gps(self) -> bool:
        return self.latitude is not None and self.longitude is not None


# --- CLUSTERING MODELS ---
class Staypoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float
    start: datetime
    end: datetime
    dwell_seconds: int
    member_count: int
    radius_km: float = 0.0
    density: float = 0.0
    sparse: bool = False


class DaySummary(BaseModel):
    day: str
    members: List[MediaRecord]
    centroid: Optional[GeoPoint] = None
    staypoints: List[Staypoint] = Field(default_factory=list)
    center_count: int = 0
    radius_km: float = 0.0
    density: float = 0.0
    travel_km: float = 0.0
    gps_count: int = 0
    distance_from_home_km: Optional[float] = None
    is_away: bool = False

    @model_validator(mode="after")
    def _sort_members(self) -> "DaySummary":
        if not self.members:
            raise ValueError(f"Day summary {self.day} has no members")
        self.members.sort(key=lambda m: m.taken_at)
        return self

    @property
    def photo_count(self) -> int:
        return len(self.members)


class StaypointSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    start_date: str
    end_date: str
    away_days: int
    members: int
    center_count: int
    radius_km: float
    density: float
    day_keys: List[str] = Field(default_factory=list)
    sparse: bool = False


# --- SELECTION MODELS ---
class VacationSelectionOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_total: int = Field(default=24, ge=1)
    max_per_day: int = Field(default=6, ge=1)
    min_spacing_seconds: int = Field(default=0, ge=0)
    phash_threshold: int = Field(default=6, ge=0)
    duplicate_window_seconds: int = Field(default=86400, ge=0)

    # Density-adaptive spacing
    min_spacing_floor_seconds: int = Field(default=60, ge=0)
    density_reference: float = Field(default=12.0, gt=0.0)

    quality_floor: float = Field(default=0.0, ge=0.0, le=1.0)
    day_caps: Dict[str, int] = Field(default_factory=dict)
    core_day_bonus: int = Field(default=0, ge=0)
    peripheral_day_penalty: int = Field(default=0, ge=0)
    enable_fill_pass: bool = True

    # Ranking adjustments on top of the quality score
    face_bonus: float = 0.0
    close_up_penalty: float = 0.0
    video_bonus: float = 0.0

    @field_validator("face_bonus", "close_up_penalty", "video_bonus")
    @classmethod
    def _non_negative_weight(cls, value: float) -> float:
        return max(0.0, value)

    @field_validator("day_caps")
    @classmethod
    def _positive_caps(cls, value: Dict[str, int]) -> Dict[str, int]:
        for day, cap in value.items():
            if cap < 1:
                raise ValueError(f"day_caps[{day}] must be >= 1, got {cap}")
        return value


class Derived(BaseModel):
    model_config = ConfigDict(frozen=True)

    run_days: int
    default_per_day_cap: int
    unique_days: List[str]
    quota_spacing_seconds: Dict[str, int]
    day_caps: Dict[str, int]
    day_categories: Dict[str, str]


class SelectionTelemetry(BaseModel):
    model_config = ConfigDict(frozen=True)

    selected_total: int = 0
    near_duplicate_blocked: int = 0
    near_duplicate_replacements: int = 0
    spacing_rejections: int = 0
    extra: Dict[str, Any] = Field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update({
            "selected_total": self.selected_total,
            "near_duplicate_blocked": self.near_duplicate_blocked,
            "near_duplicate_replacements": self.near_duplicate_replacements,
            "spacing_rejections": self.spacing_rejections,
        })
        return data


class SelectionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    members: List[MediaRecord]
    telemetry: SelectionTelemetry


# --- OUTPUT MODEL ---
class MemoryEpisode(BaseModel):
    title: str
    segment: StaypointSegment
    day_keys: List[str]
    selection: SelectionResult
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
