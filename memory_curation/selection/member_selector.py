from collections.abc import Mapping
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

from memory_curation.config import Settings
from memory_curation.logger_config import logger
from memory_curation.quality import face_metrics
from memory_curation.quality.aggregator import MediaQualityAggregator
from memory_curation.schemas import (
    DaySummary,
    Derived,
    HomeLocation,
    MediaRecord,
    SelectionResult,
    SelectionTelemetry,
    VacationSelectionOptions,
)
from .derived import compute_derived
from .similarity import phash_distance, seconds_between

UNSCORED_QUALITY = 0.5

DaySummaries = Union[Mapping, Iterable[DaySummary]]


class Candidate(NamedTuple):
    media: MediaRecord
    day: str
    quality: float
    score: float
    group_bonus: float


def selection_key(candidate: Candidate) -> Tuple[float, float, float, str]:
    """Best first: ranking score desc, group bonus desc, earliest capture, then id."""
    return (
        -candidate.score,
        -candidate.group_bonus,
        candidate.media.taken_at.timestamp(),
        candidate.media.id,
    )


def ranking_score(media: MediaRecord, quality: float, options: VacationSelectionOptions) -> float:
    """
    Quality adjusted for content: videos and faces earn a bonus, group shots
    earn a scaled extra face bonus, dominant close-ups lose up to
    close_up_penalty. Never below zero.
    """
    score = quality

    if media.is_video:
        score += options.video_bonus

    if media.faces_count:
        score += options.face_bonus
        if face_metrics.is_group_shot(media.faces_count, media.largest_face_coverage):
            score += options.face_bonus * face_metrics.group_bonus_scale(media.faces_count)

    if options.close_up_penalty > 0.0:
        score -= options.close_up_penalty * face_metrics.close_up_penalty_factor(media.largest_face_coverage)

    return max(0.0, score)


class VacationMemberSelector:
    """
    Picks the representative members of a trip.

    Pass 1 visits the days chronologically. Within a day the candidates are
    taken best first (selection_key) up to the day cap and the remaining
    target, rejecting near-duplicates and shots taken too close to any pick
    of the same day. When the target is not reached, pass 2 revisits the
    cap-skipped candidates, best first, with the caps raised to max_per_day.
    Near-duplicate replacement compares raw quality and must also respect
    the spacing of the replacing candidate's day.
    """

    def __init__(
        self,
        quality_aggregator: Optional[MediaQualityAggregator] = None,
        default_options: Optional[VacationSelectionOptions] = None,
    ):
        self.quality_aggregator = quality_aggregator or MediaQualityAggregator()
        self.default_options = default_options or VacationSelectionOptions()

    @classmethod
    def from_settings(cls, settings=Settings) -> "VacationMemberSelector":
        options = VacationSelectionOptions(
            target_total=settings.SELECTION_TARGET_TOTAL,
            max_per_day=settings.SELECTION_MAX_PER_DAY,
            min_spacing_seconds=settings.SELECTION_MIN_SPACING_SECONDS,
            phash_threshold=settings.SELECTION_PHASH_THRESHOLD,
            duplicate_window_seconds=settings.SELECTION_DUPLICATE_WINDOW_SECONDS,
            face_bonus=settings.SELECTION_FACE_BONUS,
            close_up_penalty=settings.SELECTION_CLOSE_UP_PENALTY,
            video_bonus=settings.SELECTION_VIDEO_BONUS,
        )
        return cls(
            quality_aggregator=MediaQualityAggregator.from_settings(settings),
            default_options=options,
        )

    def select(
        self,
        day_summaries: DaySummaries,
        home: Optional[HomeLocation] = None,
        options: Optional[VacationSelectionOptions] = None,
    ) -> SelectionResult:
        options = options or self.default_options
        if options.target_total <= 0:
            raise ValueError(f"target_total must be positive, got {options.target_total}")
        if options.max_per_day <= 0:
            raise ValueError(f"max_per_day must be positive, got {options.max_per_day}")

        summaries = self._as_mapping(day_summaries)

        stats = {
            "near_duplicate_blocked": 0,
            "near_duplicate_replacements": 0,
            "spacing_rejections": 0,
            "day_limit_rejections": 0,
        }

        candidates, prefilter = self._prefilter(summaries, options)
        if not candidates:
            logger.info("Member selector: no candidates after prefilter")
            return SelectionResult(
                members=[],
                telemetry=SelectionTelemetry(extra={
                    **prefilter,
                    "day_limit_rejections": 0,
                    "fill_pass_used": False,
                    "run_day_count": 0,
                }),
            )

        derived = compute_derived(
            {day: [c.media for c in items] for day, items in candidates.items()},
            summaries,
            options,
            home,
        )

        selected: List[Candidate] = []
        counts: Dict[str, int] = {day: 0 for day in derived.unique_days}
        skipped: List[Candidate] = []

        # Pass 1: days in order, best candidates first within a day
        for day in derived.unique_days:
            for candidate in sorted(candidates[day], key=selection_key):
                if len(selected) >= options.target_total:
                    break
                if counts[day] >= derived.day_caps[day]:
                    stats["day_limit_rejections"] += 1
                    skipped.append(candidate)
                    continue
                self._try_accept(candidate, selected, counts, derived, options, stats)

        # Pass 2: fill from cap-skipped candidates
        fill_pass_used = False
        capped_days = [d for d in derived.unique_days if derived.day_caps[d] < options.max_per_day]
        if options.enable_fill_pass and len(selected) < options.target_total and skipped and capped_days:
            fill_pass_used = True
            fill_caps = {
                day: options.day_caps.get(day, options.max_per_day)
                for day in derived.unique_days
            }
            for candidate in sorted(skipped, key=selection_key):
                if len(selected) >= options.target_total:
                    break
                if counts[candidate.day] >= fill_caps[candidate.day]:
                    continue
                self._try_accept(candidate, selected, counts, derived, options, stats)

        selected.sort(key=lambda c: (c.media.taken_at, c.media.id))
        members = [c.media for c in selected]

        extra = {
            **prefilter,
            "day_limit_rejections": stats["day_limit_rejections"],
            "fill_pass_used": fill_pass_used,
            "run_day_count": derived.run_days,
            "default_per_day_cap": derived.default_per_day_cap,
            "day_caps": dict(derived.day_caps),
            "day_spacing_seconds": dict(derived.quota_spacing_seconds),
            "day_categories": dict(derived.day_categories),
            "group_shots_selected": sum(
                1 for m in members if face_metrics.is_group_shot(m.faces_count, m.largest_face_coverage)
            ),
            "close_ups_selected": sum(
                1 for m in members if face_metrics.is_dominant_close_up(m.largest_face_coverage)
            ),
        }

        telemetry = SelectionTelemetry(
            selected_total=len(members),
            near_duplicate_blocked=stats["near_duplicate_blocked"],
            near_duplicate_replacements=stats["near_duplicate_replacements"],
            spacing_rejections=stats["spacing_rejections"],
            extra=extra,
        )

        logger.info(
            f"Member selector: {len(members)}/{options.target_total} selected over {derived.run_days} days "
            f"(dup blocked={telemetry.near_duplicate_blocked}, replaced={telemetry.near_duplicate_replacements}, "
            f"spacing={telemetry.spacing_rejections}, day cap={stats['day_limit_rejections']})"
        )
        return SelectionResult(members=members, telemetry=telemetry)

    # ═══════════════════════════════════════════════════════════
    # PREFILTER
    # ═══════════════════════════════════════════════════════════

    @staticmethod
    def _as_mapping(day_summaries: DaySummaries) -> Dict[str, DaySummary]:
        if isinstance(day_summaries, Mapping):
            return {day: day_summaries[day] for day in sorted(day_summaries)}
        return {summary.day: summary for summary in sorted(day_summaries, key=lambda s: s.day)}

    def _prefilter(
        self,
        summaries: Dict[str, DaySummary],
        options: VacationSelectionOptions,
    ) -> Tuple[Dict[str, List[Candidate]], Dict[str, int]]:
        counters = {"prefilter_total": 0, "prefilter_low_quality": 0, "prefilter_quality_floor": 0}
        candidates: Dict[str, List[Candidate]] = {}

        for day, summary in summaries.items():
            for media in sorted(summary.members, key=lambda m: (m.taken_at, m.id)):
                counters["prefilter_total"] += 1

                score, low_quality = self._quality_of(media)
                if low_quality:
                    counters["prefilter_low_quality"] += 1
                    continue

                quality = UNSCORED_QUALITY if score is None else score
                if quality < options.quality_floor:
                    counters["prefilter_quality_floor"] += 1
                    continue

                group_bonus = 0.0
                if face_metrics.is_group_shot(media.faces_count, media.largest_face_coverage):
                    group_bonus = face_metrics.group_bonus_scale(media.faces_count)

                score = ranking_score(media, quality, options)
                candidates.setdefault(day, []).append(Candidate(media, day, quality, score, group_bonus))

        return candidates, counters

    def _quality_of(self, media: MediaRecord) -> Tuple[Optional[float], bool]:
        if media.quality_score is not None:
            return media.quality_score, media.low_quality

        # Not aggregated yet: score it without touching the record
        report = self.quality_aggregator.evaluate(media)
        return report.score, media.low_quality or report.low_quality

    # ═══════════════════════════════════════════════════════════
    # ACCEPTANCE CHECKS
    # ═══════════════════════════════════════════════════════════

    def _try_accept(
        self,
        candidate: Candidate,
        selected: List[Candidate],
        counts: Dict[str, int],
        derived: Derived,
        options: VacationSelectionOptions,
        stats: Dict[str, int],
    ) -> bool:
        duplicate = self._find_duplicate(candidate, selected, options)
        if duplicate is not None:
            if candidate.quality <= duplicate.quality:
                stats["near_duplicate_blocked"] += 1
                return False

            index = selected.index(duplicate)
            others = selected[:index] + selected[index + 1:]
            if self._too_close(candidate, others, derived):
                # Keep the existing member
                stats["spacing_rejections"] += 1
                return False

            selected[index] = candidate
            counts[duplicate.day] -= 1
            counts[candidate.day] += 1
            stats["near_duplicate_replacements"] += 1
            return True

        if self._too_close(candidate, selected, derived):
            stats["spacing_rejections"] += 1
            return False

        selected.append(candidate)
        counts[candidate.day] += 1
        return True

    @staticmethod
    def _too_close(candidate: Candidate, selected: List[Candidate], derived: Derived) -> bool:
        """True when any pick of the candidate's day is closer than that day's spacing."""
        spacing = derived.quota_spacing_seconds.get(candidate.day, 0)
        if spacing <= 0:
            return False

        gaps = [
            seconds_between(c.media.taken_at, candidate.media.taken_at)
            for c in selected
            if c.day == candidate.day
        ]
        return bool(gaps) and min(gaps) < spacing

    @staticmethod
    def _find_duplicate(
        candidate: Candidate,
        selected: List[Candidate],
        options: VacationSelectionOptions,
    ) -> Optional[Candidate]:
        """Closest-in-time selected member that looks like the candidate."""
        if not candidate.media.phash:
            return None

        best = None
        best_gap = None
        for existing in selected:
            gap = seconds_between(existing.media.taken_at, candidate.media.taken_at)
            if gap > options.duplicate_window_seconds:
                continue

            distance = phash_distance(existing.media.phash, candidate.media.phash)
            if distance is None or distance >= options.phash_threshold:
                continue

            if best_gap is None or gap < best_gap:
                best = existing
                best_gap = gap

        return best
