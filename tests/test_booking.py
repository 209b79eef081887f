import unittest
from dataclasses import dataclass
from datetime import date

from booking_manager import TimeRange, conflicts, find_conflicts, has_time_overlap, parse_time


@dataclass(frozen=True)
class Slot:
    date: date
    start_minutes: int
    end_minutes: int


def _slot(day: date, start: str, end: str) -> Slot:
    return Slot(day, parse_time(start), parse_time(end))


class TestTimeOverlap(unittest.TestCase):
    def setUp(self) -> None:
        self.exist_start = parse_time("10:00")
        self.exist_end = parse_time("11:00")

    def test_non_overlapping_before_passes(self) -> None:
        self.assertFalse(has_time_overlap(parse_time("09:00"), parse_time("09:59"), self.exist_start, self.exist_end))

    def test_non_overlapping_after_passes(self) -> None:
        self.assertFalse(has_time_overlap(parse_time("11:01"), parse_time("12:00"), self.exist_start, self.exist_end))

    def test_exactly_touching_boundary_passes(self) -> None:
        self.assertFalse(has_time_overlap(parse_time("11:00"), parse_time("12:00"), self.exist_start, self.exist_end))
        self.assertFalse(has_time_overlap(parse_time("09:00"), parse_time("10:00"), self.exist_start, self.exist_end))

    def test_partially_overlapping_fails(self) -> None:
        self.assertTrue(has_time_overlap(parse_time("10:30"), parse_time("11:30"), self.exist_start, self.exist_end))

    def test_fully_contained_fails(self) -> None:
        self.assertTrue(has_time_overlap(parse_time("10:15"), parse_time("10:45"), self.exist_start, self.exist_end))

    def test_fully_covering_fails(self) -> None:
        self.assertTrue(has_time_overlap(parse_time("09:00"), parse_time("12:00"), self.exist_start, self.exist_end))


class TestTimeRange(unittest.TestCase):
    def test_rejects_empty_range(self) -> None:
        with self.assertRaises(ValueError):
            TimeRange(600, 600)

    def test_rejects_inverted_range(self) -> None:
        with self.assertRaises(ValueError):
            TimeRange(660, 600)


class TestConflicts(unittest.TestCase):
    def setUp(self) -> None:
        self.day = date(2024, 12, 1)
        self.existing = [
            _slot(self.day, "09:00", "10:00"),
            _slot(self.day, "10:30", "11:30"),
        ]

    def test_empty_existing_set_never_conflicts(self) -> None:
        self.assertFalse(conflicts(self.day, parse_time("10:00"), parse_time("11:00"), []))

    def test_returns_true_when_any_overlap(self) -> None:
        self.assertTrue(conflicts(self.day, parse_time("11:00"), parse_time("12:00"), self.existing))

    def test_returns_false_in_gap_between_bookings(self) -> None:
        self.assertFalse(conflicts(self.day, parse_time("10:00"), parse_time("10:30"), self.existing))

    def test_other_dates_are_ignored(self) -> None:
        other_day = [_slot(date(2024, 12, 2), "10:00", "11:00")]
        self.assertFalse(conflicts(self.day, parse_time("10:00"), parse_time("11:00"), other_day))

    def test_find_conflicts_returns_clashing_bookings(self) -> None:
        found = find_conflicts(self.day, parse_time("09:30"), parse_time("10:45"), self.existing)
        self.assertEqual(found, self.existing)

    def test_exhaustive_agreement_with_interval_rule(self) -> None:
        existing = _slot(self.day, "10:00", "11:00")
        for start in range(540, 720, 15):
            for end in range(start + 15, 735, 15):
                expected = existing.start_minutes < end and existing.end_minutes > start
                with self.subTest(start=start, end=end):
                    self.assertEqual(conflicts(self.day, start, end, [existing]), expected)


if __name__ == "__main__":
    unittest.main()
