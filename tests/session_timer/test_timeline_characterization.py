import unittest

from session_timer.timeline import (
    calculate,
    completed_flags,
    cumulative_ends,
    current_activity_index,
    is_complete,
    progress_fraction,
    progress_percent,
    remaining_in_current,
    total_seconds,
)


class TimelineBoundaryTests(unittest.TestCase):
    durations = [60, 120]

    def test_start_of_first_activity(self) -> None:
        self.assertEqual(0, current_activity_index(self.durations, 0))
        self.assertEqual(60, remaining_in_current(self.durations, 0))
        self.assertEqual((False, False), completed_flags(self.durations, 0))

    def test_last_second_of_first_activity(self) -> None:
        self.assertEqual(0, current_activity_index(self.durations, 59))
        self.assertEqual(1, remaining_in_current(self.durations, 59))

    def test_boundary_moves_to_next_activity(self) -> None:
        self.assertEqual(1, current_activity_index(self.durations, 60))
        self.assertEqual(120, remaining_in_current(self.durations, 60))
        self.assertEqual((True, False), completed_flags(self.durations, 60))

    def test_total_reached_is_complete(self) -> None:
        self.assertEqual(1, current_activity_index(self.durations, 180))
        self.assertEqual(0, remaining_in_current(self.durations, 180))
        self.assertTrue(is_complete(self.durations, 180))
        self.assertEqual((True, True), completed_flags(self.durations, 180))

    def test_progress_is_fraction_of_total(self) -> None:
        self.assertEqual(180, total_seconds(self.durations))
        self.assertEqual([60, 180], cumulative_ends(self.durations))
        self.assertAlmostEqual(0.5, progress_fraction(self.durations, 90))

    def test_overrun_progress_is_clamped_for_display_only(self) -> None:
        fraction = progress_fraction(self.durations, 360)

        self.assertAlmostEqual(2.0, fraction)
        self.assertEqual(100.0, progress_percent(fraction))
        self.assertEqual(0.0, progress_percent(-0.5))


class TimelineEmptyTests(unittest.TestCase):
    def test_empty_timeline_has_no_current_activity(self) -> None:
        view = calculate([], 0)

        self.assertEqual(0, view.total_seconds)
        self.assertEqual(0, view.current_index)
        self.assertEqual(0, view.remaining_seconds)
        self.assertEqual(0.0, view.progress)
        self.assertFalse(view.is_complete)
        self.assertFalse(view.has_current)


class TimelineScenarioTests(unittest.TestCase):
    def test_deep_work_then_break_after_1500_seconds(self) -> None:
        durations = [25 * 60, 5 * 60]

        view = calculate(durations, 1500)

        self.assertEqual(1, view.current_index)
        self.assertEqual(300, view.remaining_seconds)
        self.assertEqual((True, False), view.completed)
        self.assertFalse(view.is_complete)

    def test_current_index_never_decreases_as_elapsed_grows(self) -> None:
        durations = [60, 30, 90, 1]
        previous = 0
        for elapsed in range(0, total_seconds(durations) + 5):
            index = current_activity_index(durations, elapsed)
            self.assertGreaterEqual(index, previous)
            previous = index

    def test_remaining_matches_cumulative_end_before_completion(self) -> None:
        durations = [60, 30, 90]
        ends = cumulative_ends(durations)
        for elapsed in range(0, total_seconds(durations)):
            index = current_activity_index(durations, elapsed)
            self.assertEqual(
                ends[index] - elapsed,
                remaining_in_current(durations, elapsed),
            )


if __name__ == "__main__":
    unittest.main()
