"""
Face composition helpers.

Pure functions only: face counts and the coverage of the largest face are
turned into group-shot / close-up classifiers and bonus or penalty scales.
"""

from typing import Optional

from memory_curation.config import Settings

GROUP_FACE_THRESHOLD = Settings.FACE_GROUP_THRESHOLD
GROUP_MAX_COVERAGE = Settings.FACE_GROUP_MAX_COVERAGE
GROUP_STEP = 0.25
GROUP_MAX_EXCESS = 3
CLOSE_UP_THRESHOLD = Settings.FACE_CLOSE_UP_THRESHOLD


def normalise_coverage(coverage: Optional[float]) -> Optional[float]:
    if coverage is None:
        return None
    return max(0.0, min(1.0, float(coverage)))


def group_bonus_scale(
    faces_count: Optional[int],
    threshold: int = GROUP_FACE_THRESHOLD,
    step: float = GROUP_STEP,
    max_excess: int = GROUP_MAX_EXCESS,
) -> float:
    """
    0 below the threshold, one step at the threshold and one more step per
    extra face. Saturates at 1.0 once max_excess extra faces are reached.
    """
    if faces_count is None or faces_count < threshold:
        return 0.0

    excess = min(faces_count - threshold, max_excess)
    return min(1.0, step + excess * step)


def close_up_penalty_factor(
    coverage: Optional[float],
    threshold: float = CLOSE_UP_THRESHOLD,
) -> float:
    value = normalise_coverage(coverage)
    if value is None or value < threshold:
        return 0.0

    if threshold >= 1.0:
        return 1.0 if value >= 1.0 else 0.0

    return max(0.0, min(1.0, (value - threshold) / (1.0 - threshold)))


def is_group_shot(
    faces_count: Optional[int],
    coverage: Optional[float],
    threshold: int = GROUP_FACE_THRESHOLD,
    max_coverage: float = GROUP_MAX_COVERAGE,
) -> bool:
    if faces_count is None or faces_count < threshold:
        return False

    value = normalise_coverage(coverage)
    return value is None or value <= max_coverage


def is_dominant_close_up(
    coverage: Optional[float],
    threshold: float = CLOSE_UP_THRESHOLD,
) -> bool:
    return close_up_penalty_factor(coverage, threshold) > 0.0
