from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import List, Optional, Sequence

from memory_curation.clustering.day_summary import DaySummaryBuilder
from memory_curation.clustering.segments import VacationSegmentAssembler
from memory_curation.clustering.staypoints import StaypointDetector
from memory_curation.config import Settings
from memory_curation.debug import VacationDebugContext
from memory_curation.logger_config import logger
from memory_curation.quality.aggregator import MediaQualityAggregator
from memory_curation.schemas import (
    HomeLocation,
    MediaRecord,
    MemoryEpisode,
    VacationSelectionOptions,
)
from memory_curation.selection.member_selector import VacationMemberSelector


def _month_day(value: date) -> str:
    return f"{value.strftime('%B')} {value.day}"


def generate_time_title(start_date: str, end_date: str) -> str:
    """Readable date range, e.g. 'June 3-7, 2024' or 'December 30, 2023 - January 2, 2024'."""
    start = date.fromisoformat(start_date)
    end = date.fromisoformat(end_date)

    if start == end:
        return f"{_month_day(start)}, {start.year}"
    if start.year == end.year and start.month == end.month:
        return f"{_month_day(start)}-{end.day}, {start.year}"
    if start.year == end.year:
        return f"{_month_day(start)} - {_month_day(end)}, {start.year}"
    return f"{_month_day(start)}, {start.year} - {_month_day(end)}, {end.year}"


class MemoryCurationEngine:
    def __init__(
        self,
        quality_aggregator: Optional[MediaQualityAggregator] = None,
        day_builder: Optional[DaySummaryBuilder] = None,
        segment_assembler: Optional[VacationSegmentAssembler] = None,
        member_selector: Optional[VacationMemberSelector] = None,
        debug_context: Optional[VacationDebugContext] = None,
    ):
        self.debug_context = debug_context or VacationDebugContext()
        self.quality_aggregator = quality_aggregator or MediaQualityAggregator.from_settings(Settings)
        self.day_builder = day_builder or DaySummaryBuilder.from_settings(
            Settings,
            staypoint_detector=StaypointDetector.from_settings(Settings, debug_context=self.debug_context),
        )
        self.segment_assembler = segment_assembler or VacationSegmentAssembler.from_settings(
            Settings, debug_context=self.debug_context
        )
        self.member_selector = member_selector or VacationMemberSelector(
            quality_aggregator=self.quality_aggregator,
            default_options=VacationMemberSelector.from_settings(Settings).default_options,
        )

    def curate(
        self,
        media: Sequence[MediaRecord],
        home: Optional[HomeLocation] = None,
        options: Optional[VacationSelectionOptions] = None,
    ) -> List[MemoryEpisode]:
        if not media:
            logger.info("Curation: no media")
            return []

        # 1. Quality annotation for records the ingestion stage left unscored
        unscored = [m for m in media if m.quality_score is None]
        for item in unscored:
            self.quality_aggregator.aggregate(item)
        if unscored:
            logger.info(f"Curation: aggregated quality for {len(unscored)}/{len(media)} media")

        # 2. Days and trip segments
        days = self.day_builder.build(media, home)
        segments = self.segment_assembler.assemble(days, home)

        # 3. Members per segment
        episodes = []
        for segment in segments:
            segment_days = {key: days[key] for key in segment.day_keys}
            selection = self.member_selector.select(segment_days, home, options)

            episodes.append(MemoryEpisode(
                title=generate_time_title(segment.start_date, segment.end_date),
                segment=segment,
                day_keys=list(segment.day_keys),
                selection=selection,
            ))

        logger.info(f"Curation: {len(media)} media -> {len(episodes)} episodes")
        return episodes

    def curate_batch(
        self,
        candidates: Sequence[Sequence[MediaRecord]],
        home: Optional[HomeLocation] = None,
        options: Optional[VacationSelectionOptions] = None,
        max_workers: Optional[int] = None,
    ) -> List[List[MemoryEpisode]]:
        """Curates independent media snapshots in parallel. Output order matches input order."""
        if not candidates:
            return []

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(lambda batch: self.curate(batch, home, options), candidates))
