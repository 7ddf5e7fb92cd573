#!/usr/bin/env python3
"""
Tests for flight paths.

Tests cover:
1. Arc-length bookkeeping and target sampling
2. Path closure (fraction 0 and 1 give the same point)
3. Action latching on segment transitions and action_taken()
4. LAUNCH coin flip
5. Rotation about a pivot
6. Track classification (FILL and LAUNCH vertices) and the track table
"""

import math
import random
import pytest

from battlekeys.flightpath import (
    FPt,
    FlightPath,
    LAUNCH_KEEP_PROBABILITY,
    PathAction,
    TRACKS,
    classify_track,
    track_path,
)
from battlekeys.vecmath import Vector2D


class FixedRng:
    """Random source that always returns the same value."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def square_path():
    """Unit square loop starting at the origin, FILL at (1, 1)."""
    return FlightPath([
        (0, 0, PathAction.NONE),
        (1, 0, PathAction.NONE),
        (1, 1, PathAction.FILL),
        (0, 1, PathAction.NONE),
    ], rng=random.Random(0))


# =============================================================================
# SAMPLING TESTS
# =============================================================================

class TestFlightPathSampling:
    """Tests for arc length and target positions."""

    def test_closing_point_is_appended(self, square_path):
        assert len(square_path) == 5
        assert square_path.points[-1].position == square_path.points[0].position

    def test_cumulative_distances(self, square_path):
        assert [p.dist_to for p in square_path.points] == pytest.approx([0, 1, 2, 3, 4])
        assert square_path.total_dist == pytest.approx(4.0)

    @pytest.mark.parametrize("frac,expected", [
        (0.0, Vector2D(0, 0)),
        (0.125, Vector2D(0.5, 0)),
        (0.25, Vector2D(1, 0)),
        (0.5, Vector2D(1, 1)),
        (0.875, Vector2D(0, 0.5)),
    ])
    def test_target_pos(self, square_path, frac, expected):
        assert square_path.target_pos(frac) == expected

    def test_path_is_closed(self, square_path):
        assert square_path.target_pos(0.0) == square_path.target_pos(1.0)

    def test_fraction_wraps(self, square_path):
        assert square_path.target_pos(1.125) == square_path.target_pos(0.125)

    def test_target_pos_does_not_latch_actions(self, square_path):
        square_path.target_pos(0.6)
        assert square_path.action_pending is PathAction.NONE

    def test_accepts_fpt_objects(self):
        path = FlightPath([FPt(Vector2D(0, 0)), FPt(Vector2D(2, 0), PathAction.FILL)])
        assert path.total_dist == pytest.approx(4.0)
        assert path.points[1].action is PathAction.FILL

    def test_degenerate_path_rejected(self):
        with pytest.raises(ValueError):
            FlightPath([(1, 1, PathAction.NONE), (1, 1, PathAction.NONE)])

    def test_single_point_rejected(self):
        with pytest.raises(ValueError):
            FlightPath([(1, 1, PathAction.NONE)])


# =============================================================================
# ACTION TESTS
# =============================================================================

class TestFlightPathActions:
    """Tests for latched path actions."""

    def test_no_action_on_first_segment(self, square_path):
        assert square_path.action(0.1) is PathAction.NONE

    def test_fill_latched_on_entering_segment(self, square_path):
        square_path.action(0.3)
        assert square_path.action(0.55) is PathAction.FILL
        # Still pending on the same segment
        assert square_path.action(0.6) is PathAction.FILL

    def test_action_taken_clears_until_next_segment(self, square_path):
        square_path.action(0.55)
        square_path.action_taken()
        assert square_path.action(0.6) is PathAction.NONE

    def test_action_taken_is_idempotent(self, square_path):
        square_path.action(0.55)
        square_path.action_taken()
        square_path.action_taken()
        assert square_path.action_pending is PathAction.NONE

    def test_action_proposed_again_next_lap(self, square_path):
        square_path.action(0.55)
        square_path.action_taken()
        square_path.action(0.8)
        square_path.action(0.1)
        assert square_path.action(0.55) is PathAction.FILL

    @pytest.mark.parametrize("roll,expected", [
        (0.0, PathAction.LAUNCH),
        (LAUNCH_KEEP_PROBABILITY - 0.01, PathAction.LAUNCH),
        (LAUNCH_KEEP_PROBABILITY, PathAction.NONE),
        (0.9, PathAction.NONE),
    ])
    def test_launch_coin_flip(self, roll, expected):
        path = FlightPath([
            (0, 0, PathAction.NONE),
            (1, 0, PathAction.LAUNCH),
            (1, 1, PathAction.NONE),
        ], rng=FixedRng(roll))
        assert path.action(0.5) is expected

    def test_launch_rate_with_seeded_rng(self):
        """Roughly 30% of LAUNCH vertex passes propose a launch."""
        path = FlightPath([
            (0, 0, PathAction.NONE),
            (1, 0, PathAction.LAUNCH),
            (1, 1, PathAction.NONE),
        ], rng=random.Random(42))
        kept = 0
        laps = 2000
        for _ in range(laps):
            path.action(0.1)
            if path.action(0.5) is PathAction.LAUNCH:
                kept += 1
        assert kept / laps == pytest.approx(LAUNCH_KEEP_PROBABILITY, abs=0.05)


# =============================================================================
# ROTATION TESTS
# =============================================================================

class TestFlightPathRotation:
    """Tests for rotated copies."""

    def test_rotation_about_origin(self, square_path):
        rotated = square_path.rotated(math.pi / 2, Vector2D(0, 0))
        assert rotated.target_pos(0.25) == Vector2D(0, 1)
        assert rotated.total_dist == pytest.approx(square_path.total_dist)

    def test_rotation_about_pivot(self, square_path):
        rotated = square_path.rotated(math.pi, Vector2D(0.5, 0.5))
        assert rotated.target_pos(0.0) == Vector2D(1, 1)

    def test_rotation_keeps_actions_and_rng(self, square_path):
        rotated = square_path.rotated(0.3, Vector2D(0, 0))
        assert [p.action for p in rotated.points] == [p.action for p in square_path.points]
        assert rotated.rng is square_path.rng

    def test_rotation_leaves_original_untouched(self, square_path):
        square_path.rotated(1.0, Vector2D(0, 0))
        assert square_path.target_pos(0.25) == Vector2D(1, 0)


# =============================================================================
# TRACK TESTS
# =============================================================================

class TestTracks:
    """Tests for track classification and the track table."""

    def test_first_and_tagged_vertices_are_fill(self):
        track = (1, 0, 9,   0, 1, 7,   -1, 0, 9,   0, -1, 9)
        actions = [p.action for p in classify_track(track)]
        assert actions[0] is PathAction.FILL
        assert actions[1] is PathAction.FILL

    def test_launch_where_velocity_sweeps_past_home(self):
        """Vertex 1 turns while heading at the origin, crossing the line to it."""
        track = (1, -0.5, 9,   0.5, 0, 9,   0, -0.5, 9,   0.5, -1, 9)
        actions = [p.action for p in classify_track(track)]
        assert actions == [PathAction.FILL, PathAction.LAUNCH, PathAction.NONE, PathAction.NONE]

    def test_launch_relative_to_home(self):
        """Moving the home point changes which vertices sweep past it."""
        track = (1, -0.5, 9,   0.5, 0, 9,   0, -0.5, 9,   0.5, -1, 9)
        actions = [p.action for p in classify_track(track, home=Vector2D(0.5, 5))]
        assert PathAction.LAUNCH not in actions

    def test_malformed_track_rejected(self):
        with pytest.raises(ValueError):
            classify_track((1, 0, 9, 2))

    @pytest.mark.parametrize("idx", range(len(TRACKS)))
    def test_table_tracks_build(self, idx):
        path = track_path(idx, rng=random.Random(1))
        assert path.total_dist > 0
        assert path.points[0].action is PathAction.FILL
        assert path.target_pos(0.0) == path.target_pos(1.0)

    def test_track_index_wraps(self):
        wrapped = track_path(len(TRACKS), rng=random.Random(1))
        first = track_path(0, rng=random.Random(1))
        assert wrapped.total_dist == pytest.approx(first.total_dist)
