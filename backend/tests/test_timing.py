"""
Unit tests for the timing planner and canvas selection.
"""
import math

import pytest

from conftest import make_image
from slidepipe.errors import InvalidInputError
from slidepipe.pipeline.canvas import select_canvas
from slidepipe.pipeline.timing import format_duration, plan_timing, slot_duration
from slidepipe.schemas.run import Canvas


class TestPlanTiming:
    """Tests for plan_timing function."""

    @pytest.mark.parametrize(
        "total_duration,image_count",
        [(12.0, 1), (12.0, 3), (10.0, 3), (0.5, 7), (187.34, 23), (1e-3, 2)],
    )
    def test_slots_are_contiguous_and_cover_total(self, total_duration, image_count):
        plan = plan_timing(total_duration, image_count)

        assert len(plan) == image_count
        assert plan.slots[0].start == 0.0
        for current, following in zip(plan.slots, plan.slots[1:]):
            assert current.end == following.start
        assert plan.slots[-1].end == total_duration
        assert math.isclose(sum(s.duration for s in plan.slots), total_duration, rel_tol=1e-9)

    def test_equal_durations(self):
        plan = plan_timing(10.0, 4)

        assert [s.index for s in plan.slots] == [0, 1, 2, 3]
        assert all(s.duration == 2.5 for s in plan.slots)
        assert [s.start for s in plan.slots] == [0.0, 2.5, 5.0, 7.5]
        assert plan.slot_duration == 2.5

    def test_single_image_spans_everything(self):
        plan = plan_timing(42.0, 1)

        assert len(plan) == 1
        assert plan.slots[0].start == 0.0
        assert plan.slots[0].end == 42.0
        assert plan.slots[0].duration == 42.0

    def test_idempotent(self):
        assert plan_timing(33.3, 7) == plan_timing(33.3, 7)

    @pytest.mark.parametrize("image_count", [0, -1])
    def test_rejects_non_positive_image_count(self, image_count):
        with pytest.raises(InvalidInputError) as exc_info:
            plan_timing(10.0, image_count)

        assert exc_info.value.recoverable is True

    def test_rejects_non_positive_duration(self):
        with pytest.raises(InvalidInputError):
            slot_duration(0.0, 3)


class TestFormatDuration:
    @pytest.mark.parametrize(
        "seconds,expected",
        [(0, "0:00"), (59.9, "0:59"), (65, "1:05"), (3600, "1:00:00"), (3725.5, "1:02:05")],
    )
    def test_format(self, seconds, expected):
        assert format_duration(seconds) == expected


class TestSelectCanvas:
    """Tests for select_canvas function."""

    def test_widest_image_wins_ties_broken_by_height(self):
        images = [
            make_image(0, width=100, height=200),
            make_image(1, width=150, height=150),
            make_image(2, width=150, height=180),
        ]

        assert select_canvas(images) == Canvas(width=150, height=180)

    def test_taller_narrow_image_does_not_win(self):
        images = [make_image(0, width=1920, height=1080), make_image(1, width=1080, height=1920)]

        assert select_canvas(images) == Canvas(width=1920, height=1080)

    def test_height_of_widest_kept_when_later_images_narrower(self):
        images = [make_image(0, width=800, height=600), make_image(1, width=640, height=2000)]

        assert select_canvas(images) == Canvas(width=800, height=600)

    def test_requires_images(self):
        with pytest.raises(InvalidInputError):
            select_canvas([])
