import os
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r} (expected a number)")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r} (expected an integer)")


class Settings:
    # 1. Runtime
    TIMEZONE = os.getenv("CURATION_TIMEZONE", "UTC")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # 2. Quality aggregation
    QUALITY_BASELINE_MEGAPIXELS = _env_float("QUALITY_BASELINE_MEGAPIXELS", 12.0)
    QUALITY_LOW_SCORE = _env_float("QUALITY_LOW_SCORE", 0.35)
    QUALITY_LOW_RESOLUTION = _env_float("QUALITY_LOW_RESOLUTION", 0.30)
    QUALITY_LOW_SHARPNESS = _env_float("QUALITY_LOW_SHARPNESS", 0.30)
    QUALITY_LOW_EXPOSURE = _env_float("QUALITY_LOW_EXPOSURE", 0.25)
    QUALITY_LOW_NOISE = _env_float("QUALITY_LOW_NOISE", 0.25)
    QUALITY_CLIPPING_LOW = _env_float("QUALITY_CLIPPING_LOW", 0.15)
    QUALITY_CLIPPING_PENALTY_WEIGHT = _env_float("QUALITY_CLIPPING_PENALTY_WEIGHT", 0.5)

    # 3. Face metrics
    FACE_GROUP_THRESHOLD = _env_int("FACE_GROUP_THRESHOLD", 3)
    FACE_GROUP_MAX_COVERAGE = _env_float("FACE_GROUP_MAX_COVERAGE", 0.45)
    FACE_CLOSE_UP_THRESHOLD = _env_float("FACE_CLOSE_UP_THRESHOLD", 0.55)

    # 4. Staypoints & segments
    STAYPOINT_RADIUS_KM = _env_float("STAYPOINT_RADIUS_KM", 0.25)
    STAYPOINT_MAX_GAP_MINUTES = _env_int("STAYPOINT_MAX_GAP_MINUTES", 60)
    STAYPOINT_MIN_MEMBERS = _env_int("STAYPOINT_MIN_MEMBERS", 2)
    CENTER_MERGE_RADIUS_KM = _env_float("CENTER_MERGE_RADIUS_KM", 0.5)
    HOME_RADIUS_KM = _env_float("HOME_RADIUS_KM", 15.0)
    SEGMENT_MAX_GAP_DAYS = _env_int("SEGMENT_MAX_GAP_DAYS", 1)
    SEGMENT_MIN_MEMBERS = _env_int("SEGMENT_MIN_MEMBERS", 3)

    # 5. Member selection defaults
    SELECTION_TARGET_TOTAL = _env_int("SELECTION_TARGET_TOTAL", 24)
    SELECTION_MAX_PER_DAY = _env_int("SELECTION_MAX_PER_DAY", 6)
    SELECTION_MIN_SPACING_SECONDS = _env_int("SELECTION_MIN_SPACING_SECONDS", 300)
    SELECTION_PHASH_THRESHOLD = _env_int("SELECTION_PHASH_THRESHOLD", 6)
    SELECTION_DUPLICATE_WINDOW_SECONDS = _env_int("SELECTION_DUPLICATE_WINDOW_SECONDS", 86400)
    SELECTION_FACE_BONUS = _env_float("SELECTION_FACE_BONUS", 0.0)
    SELECTION_CLOSE_UP_PENALTY = _env_float("SELECTION_CLOSE_UP_PENALTY", 0.0)
    SELECTION_VIDEO_BONUS = _env_float("SELECTION_VIDEO_BONUS", 0.0)


# Fail fast on settings that can never produce a valid run
if Settings.SELECTION_TARGET_TOTAL < 1:
    raise ValueError("SELECTION_TARGET_TOTAL must be >= 1")

if Settings.SELECTION_MAX_PER_DAY < 1:
    raise ValueError("SELECTION_MAX_PER_DAY must be >= 1")

if Settings.STAYPOINT_RADIUS_KM <= 0.0:
    raise ValueError("STAYPOINT_RADIUS_KM must be > 0")

settings = Settings()
