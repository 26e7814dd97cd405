"""
Unit tests for VacationSegmentAssembler
Scope: away-day runs, bridging, gaps, sparse segments, debug recording
"""

import unittest
from datetime import datetime, timedelta, timezone

from memory_curation.clustering.day_summary import DaySummaryBuilder
from memory_curation.clustering.segments import VacationSegmentAssembler
from memory_curation.debug import VacationDebugContext
from memory_curation.schemas import HomeLocation, MediaRecord

HANOI = HomeLocation(lat=21.0285, lon=105.8542, radius_km=15.0)
HOME = (HANOI.lat, HANOI.lon)
DA_NANG = (16.0544, 108.2022)


def photos_on(day, coords, count=3, start_idx=0):
    """`count` photos one hour apart on 2024-06-`day`."""
    lat, lon = coords if coords else (None, None)
    base = datetime(2024, 6, day, 8, 0, tzinfo=timezone.utc)
    return [
        MediaRecord(
            id=f"d{day}-{start_idx + i}",
            path=f"/photos/d{day}-{i}.jpg",
            taken_at=base + timedelta(hours=i),
            latitude=lat,
            longitude=lon,
        )
        for i in range(count)
    ]


class TestSegmentAssembler(unittest.TestCase):

    def setUp(self):
        self.debug = VacationDebugContext(enabled=True)
        self.builder = DaySummaryBuilder()
        self.assembler = VacationSegmentAssembler(debug_context=self.debug)

    def assemble(self, media, home=HANOI, assembler=None):
        days = self.builder.build(media, home)
        return (assembler or self.assembler).assemble(days, home)

    # ---------- BASIC RUNS ----------

    def test_consecutive_away_days_form_one_segment(self):
        media = photos_on(1, HOME) + photos_on(2, DA_NANG) + photos_on(3, DA_NANG) + photos_on(4, DA_NANG)

        segments = self.assemble(media)

        self.assertEqual(len(segments), 1)
        segment = segments[0]
        self.assertEqual(segment.start_date, "2024-06-02")
        self.assertEqual(segment.end_date, "2024-06-04")
        self.assertEqual(segment.away_days, 3)
        self.assertEqual(segment.members, 9)
        self.assertEqual(segment.center_count, 1)
        self.assertEqual(segment.day_keys, ["2024-06-02", "2024-06-03", "2024-06-04"])
        self.assertFalse(segment.sparse)
        self.assertGreater(segment.density, 0.0)

    def test_home_day_splits_segments(self):
        media = photos_on(1, DA_NANG) + photos_on(2, HOME) + photos_on(3, DA_NANG)

        segments = self.assemble(media)

        self.assertEqual([(s.start_date, s.end_date) for s in segments],
                         [("2024-06-01", "2024-06-01"), ("2024-06-03", "2024-06-03")])

    def test_only_home_days_give_no_segment(self):
        self.assertEqual(self.assemble(photos_on(1, HOME) + photos_on(2, HOME)), [])

    def test_empty_input(self):
        self.assertEqual(self.assembler.assemble({}, HANOI), [])

    # ---------- BRIDGING & GAPS ----------

    def test_day_without_gps_bridges_away_days(self):
        media = photos_on(1, DA_NANG) + photos_on(2, None) + photos_on(3, DA_NANG)

        segments = self.assemble(media)

        self.assertEqual(len(segments), 1)
        self.assertEqual(segments[0].day_keys, ["2024-06-01", "2024-06-02", "2024-06-03"])
        self.assertEqual(segments[0].away_days, 2)
        self.assertEqual(segments[0].members, 9)

    def test_trailing_day_without_gps_is_not_bridged(self):
        segments = self.assemble(photos_on(1, DA_NANG) + photos_on(2, None))

        self.assertEqual(segments[0].day_keys, ["2024-06-01"])

    def test_missing_day_splits_run(self):
        media = photos_on(1, DA_NANG) + photos_on(3, DA_NANG)

        self.assertEqual(len(self.assemble(media)), 2)

        lenient = VacationSegmentAssembler(max_gap_days=2)
        self.assertEqual(len(self.assemble(media, assembler=lenient)), 1)

    def test_without_home_every_gps_day_is_away(self):
        media = photos_on(1, HOME) + photos_on(2, DA_NANG)

        segments = self.assemble(media, home=None)

        self.assertEqual(len(segments), 1)
        self.assertEqual(segments[0].away_days, 2)
        self.assertEqual(segments[0].center_count, 2)

    # ---------- SPARSE & DEBUG ----------

    def test_sparse_segment_is_emitted_and_warned(self):
        segments = self.assemble(photos_on(1, DA_NANG, count=2))

        self.assertEqual(len(segments), 1)
        self.assertTrue(segments[0].sparse)
        self.assertTrue(any("Sparse segment" in w for w in self.debug.get_warnings()))

    def test_segments_recorded_in_debug_context(self):
        media = photos_on(1, DA_NANG) + photos_on(2, HOME) + photos_on(3, DA_NANG)

        segments = self.assemble(media)

        self.assertEqual(self.debug.get_segments(), segments)

    def test_disabled_context_records_nothing(self):
        debug = VacationDebugContext()
        assembler = VacationSegmentAssembler(debug_context=debug)

        self.assemble(photos_on(1, DA_NANG, count=1), assembler=assembler)

        self.assertEqual(debug.get_segments(), [])
        self.assertEqual(debug.get_warnings(), [])

    def test_invalid_arguments(self):
        with self.assertRaises(ValueError):
            VacationSegmentAssembler(max_gap_days=0)
        with self.assertRaises(ValueError):
            VacationSegmentAssembler(min_segment_members=0)


if __name__ == "__main__":
    unittest.main()
