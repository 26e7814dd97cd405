import math
from typing import List, Optional, Tuple

from pydantic import BaseModel

from memory_curation.config import Settings
from memory_curation.schemas import MediaRecord

ISO_MIN = 50.0
ISO_MAX = 6400.0


class QualityReport(BaseModel):
    resolution: Optional[float] = None
    sharpness: Optional[float] = None
    noise: Optional[float] = None
    exposure: Optional[float] = None
    clipping: Optional[float] = None
    score: Optional[float] = None
    noise_threshold: float = 0.25
    low_quality: bool = False


def clamp01(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return max(0.0, min(1.0, float(value)))


def weighted_score(components: List[Tuple[Optional[float], float]]) -> Optional[float]:
    """Weighted mean over the present components only."""
    total = 0.0
    weight_sum = 0.0

    for value, weight in components:
        if value is None:
            continue
        total += value * weight
        weight_sum += weight

    if weight_sum <= 0.0:
        return None

    return clamp01(total / weight_sum)


class MediaQualityAggregator:
    def __init__(
        self,
        baseline_megapixels: float = 12.0,
        low_score_threshold: float = 0.35,
        low_resolution_threshold: float = 0.30,
        low_sharpness_threshold: float = 0.30,
        low_exposure_threshold: float = 0.25,
        low_noise_threshold: float = 0.25,
        clipping_low_quality_threshold: float = 0.15,
        clipping_penalty_weight: float = 0.5,
        brightness_target: float = 0.55,
        brightness_tolerance: float = 0.35,
        noise_reference_year: int = 2015,
        noise_threshold_decay_per_year: float = 0.01,
        noise_threshold_floor: float = 0.10,
    ):
        if baseline_megapixels <= 0.0:
            raise ValueError("baseline_megapixels must be > 0")
        if brightness_tolerance <= 0.0:
            raise ValueError("brightness_tolerance must be > 0")

        self.baseline_megapixels = baseline_megapixels
        self.low_score_threshold = low_score_threshold
        self.low_resolution_threshold = low_resolution_threshold
        self.low_sharpness_threshold = low_sharpness_threshold
        self.low_exposure_threshold = low_exposure_threshold
        self.low_noise_threshold = low_noise_threshold
        self.clipping_low_quality_threshold = clipping_low_quality_threshold
        self.clipping_penalty_weight = clipping_penalty_weight
        self.brightness_target = brightness_target
        self.brightness_tolerance = brightness_tolerance
        self.noise_reference_year = noise_reference_year
        self.noise_threshold_decay_per_year = noise_threshold_decay_per_year
        self.noise_threshold_floor = noise_threshold_floor

    @classmethod
    def from_settings(cls, settings=Settings) -> "MediaQualityAggregator":
        return cls(
            baseline_megapixels=settings.QUALITY_BASELINE_MEGAPIXELS,
            low_score_threshold=settings.QUALITY_LOW_SCORE,
            low_resolution_threshold=settings.QUALITY_LOW_RESOLUTION,
            low_sharpness_threshold=settings.QUALITY_LOW_SHARPNESS,
            low_exposure_threshold=settings.QUALITY_LOW_EXPOSURE,
            low_noise_threshold=settings.QUALITY_LOW_NOISE,
            clipping_low_quality_threshold=settings.QUALITY_CLIPPING_LOW,
            clipping_penalty_weight=settings.QUALITY_CLIPPING_PENALTY_WEIGHT,
        )

    def aggregate(self, media: MediaRecord) -> None:
        """
        Writes the aggregated quality fields onto the media record and
        appends a one-line summary to its index log.
        """
        report = self.evaluate(media)

        media.quality_resolution = report.resolution
        media.quality_sharpness = report.sharpness
        media.quality_noise = report.noise
        media.quality_exposure = report.exposure
        media.quality_clipping = report.clipping
        media.quality_score = report.score
        media.low_quality = report.low_quality

        media.index_log.append(self._summary_line(report))

    def evaluate(self, media: MediaRecord) -> QualityReport:
        """Side-effect free variant of aggregate()."""
        resolution = self._resolution_score(media.width, media.height)
        sharpness = clamp01(media.sharpness)
        noise = self._iso_score(media.iso)
        exposure = self._exposure_score(media.brightness, media.contrast)
        clipping = clamp01(media.quality_clipping)

        score = weighted_score([
            (sharpness, 0.50),
            (exposure, 0.30),
            (noise, 0.20),
        ])

        if score is not None and clipping is not None and clipping > 0.0:
            penalty = clamp01(self.clipping_penalty_weight * clipping)
            score = max(0.0, score * (1.0 - penalty))

        noise_threshold = self._noise_threshold_for(media)

        # Every rule can flag on its own
        low_quality = any([
            score is not None and score < self.low_score_threshold,
            resolution is not None and resolution < self.low_resolution_threshold,
            sharpness is not None and sharpness < self.low_sharpness_threshold,
            exposure is not None and exposure < self.low_exposure_threshold,
            noise is not None and noise < noise_threshold,
            clipping is not None and clipping > self.clipping_low_quality_threshold,
        ])

        return QualityReport(
            resolution=resolution,
            sharpness=sharpness,
            noise=noise,
            exposure=exposure,
            clipping=clipping,
            score=score,
            noise_threshold=noise_threshold,
            low_quality=low_quality,
        )

    # ═══════════════════════════════════════════════════════════
    # INDIVIDUAL SCORERS
    # ═══════════════════════════════════════════════════════════

    def _resolution_score(self, width: Optional[int], height: Optional[int]) -> Optional[float]:
        if width is None or height is None or width <= 0 or height <= 0:
            return None

        megapixels = (float(width) * float(height)) / 1_000_000.0
        return clamp01(megapixels / self.baseline_megapixels)

    def _iso_score(self, iso: Optional[int]) -> Optional[float]:
        if iso is None or iso <= 0:
            return None

        value = max(ISO_MIN, min(ISO_MAX, float(iso)))
        return 1.0 - (math.log(value / ISO_MIN) / math.log(ISO_MAX / ISO_MIN))

    def _exposure_score(self, brightness: Optional[float], contrast: Optional[float]) -> Optional[float]:
        brightness = clamp01(brightness)
        balanced = None
        if brightness is not None:
            balanced = self._balanced_score(brightness, self.brightness_target, self.brightness_tolerance)

        return weighted_score([
            (balanced, 0.60),
            (clamp01(contrast), 0.40),
        ])

    @staticmethod
    def _balanced_score(value: float, target: float, tolerance: float) -> float:
        delta = abs(value - target)
        if delta >= tolerance:
            return 0.0
        return 1.0 - (delta / tolerance)

    def _noise_threshold_for(self, media: MediaRecord) -> float:
        # Older sensors get a more lenient noise threshold
        delta_years = self.noise_reference_year - media.taken_at.year
        if delta_years <= 0:
            return self.low_noise_threshold

        adjusted = self.low_noise_threshold - delta_years * self.noise_threshold_decay_per_year
        return max(self.noise_threshold_floor, adjusted)

    @staticmethod
    def _summary_line(report: QualityReport) -> str:
        def fmt(value: Optional[float]) -> str:
            return "n/a" if value is None else f"{value:.3f}"

        status = "low" if report.low_quality else "ok"
        return (
            f"quality.aggregate status={status} score={fmt(report.score)} "
            f"sharpness={fmt(report.sharpness)} clipping={fmt(report.clipping)}"
        )
