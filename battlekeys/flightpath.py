#!/usr/bin/env python3
"""
Flight Path Module for Battle Keys

Determines where every enemy ship should be at any given time:
- FPt: a path vertex with an action tag (NONE, LAUNCH, FILL)
- FlightPath: closed polyline sampled by arc length (path fraction)
- Rotation of an existing path about a pivot
- Predefined track table and LAUNCH point detection

A ship's path fraction is (elapsed / cycle_time) mod 1. Actions are
latched when the sampled fraction moves onto a new segment, so each
vertex proposes its action at most once per lap.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable, Optional, Sequence, Union

import numpy as np

from .vecmath import Vector2D, cross_z, interpolate


# =============================================================================
# CONSTANTS
# =============================================================================

# Probability that a LAUNCH vertex actually proposes a launch when reached
LAUNCH_KEEP_PROBABILITY = 0.3

# Track table vertex tags
TRACK_TAG_FILL = 7
TRACK_TAG_NORMAL = 9

# Predefined tracks as flat (x, y, tag) triples. Every enemy batch uses one
# of these, rotated about the home ship.
TRACKS: tuple[tuple[float, ...], ...] = (
    (
        1.6, 0, 7,     0.1, -.4, 9,   -.15, -.6, 9,  0, -1, 9,      .3, -1, 9,
        .4, -.7, 9,    -.5, -.5, 9,   -1, -.2, 9,    -0.9, .4, 9,   -.7, .5, 9,
        -.6, .25, 9,   -.75, 0, 9,    -1, .25, 9,    -1.2, 1.2, 7,  -.2, 0.8, 9,
        .5, 1, 9,      .7, .8, 9,     .4, .6, 9,     0, .7, 9,      0, 1.2, 9,
        .6, 1.4, 9,    1.7, .7, 9,    1.6, .1, 9,
    ),
    (
        1.6, 0, 7,     0.8, -.6, 9,   .4, -.9, 9,    -.7, -1, 9,    -.6, -.7, 9,
        -.2, -.6, 9,   .3, -.65, 9,   .4, -.9, 9,    -.2, -1.1, 9,  -.75, -.65, 9,
        -.75, -.1, 9,  -.9, .2, 9,    -1.3, .2, 7,   -1.2, -.25, 9, -.8, -.4, 9,
        -.5, -.15, 9,  -.7, .6, 9,    -.4, .8, 9,    .25, .75, 9,   .2, .5, 9,
        -.25, .5, 9,   -.2, .8, 9,    .6, .9, 9,     1, .6, 9,
    ),
    (
        1.6, 0, 7,     .7, .65, 9,    -.1, .5, 9,    -.75, .6, 9,   -.75, .9, 9,
        .2, .9, 9,     .2, .75, 9,    -.2, .4, 9,    -.6, .25, 9,   -.8, .7, 9,
        -.4, .75, 9,   -.25, .25, 9,  -.7, .2, 9,    -.75, -.75, 9, -.25, -1.3, 7,
        .4, -.75, 9,   .3, -.4, 9,    -.25, -.7, 9,  .1, -.9, 9,    .9, -.8, 9,
    ),
)


# =============================================================================
# PATH POINTS
# =============================================================================

class PathAction(Enum):
    """Recommended ship action at a path vertex."""
    NONE = auto()
    LAUNCH = auto()  # Release torpedoes toward the home ship
    FILL = auto()    # Load a fresh engine sequence


@dataclass
class FPt:
    """
    A flight path vertex.

    Attributes:
        position: Coordinate of the vertex (bsu).
        action: Action recommended when a ship passes this vertex.
        dist_to: Cumulative arc length from the first vertex (bsu).
    """
    position: Vector2D
    action: PathAction = PathAction.NONE
    dist_to: float = 0.0


PointLike = Union[FPt, tuple[float, float, PathAction]]


# =============================================================================
# FLIGHT PATH
# =============================================================================

class FlightPath:
    """
    Closed piecewise-linear loop sampled by arc-length fraction.

    The constructor appends a copy of the first vertex to close the loop and
    records the cumulative arc length of every vertex.

    Usage:
        path = FlightPath([(0.5, 0.0, PathAction.FILL), (0.0, 0.5, PathAction.NONE),
                           (-0.5, 0.0, PathAction.NONE)], rng=random.Random(1))
        path.target_pos(0.25)
        path.action(0.25)
    """

    def __init__(self, points: Iterable[PointLike], rng: Optional[random.Random] = None) -> None:
        pts = [_to_fpt(p) for p in points]
        if len(pts) < 2:
            raise ValueError("FlightPath needs at least two points")
        first = pts[0]
        pts.append(FPt(first.position.copy(), first.action))

        coords = np.array([[p.position.x, p.position.y] for p in pts], dtype=float)
        seg_lengths = np.hypot(np.diff(coords[:, 0]), np.diff(coords[:, 1]))
        cumulative = np.concatenate(([0.0], np.cumsum(seg_lengths)))
        for pt, dist in zip(pts, cumulative):
            pt.dist_to = float(dist)

        self.total_dist = float(cumulative[-1])
        if not self.total_dist > 0:
            raise ValueError("FlightPath must have a positive total length")

        self.points: list[FPt] = pts
        self._cumulative = cumulative
        self.rng = rng if rng is not None else random.Random()
        self._last_idx = 0
        self.action_pending = PathAction.NONE

    def rotated(self, angle_rad: float, pivot: Vector2D) -> FlightPath:
        """New path with every vertex rotated about pivot. Shares this path's RNG."""
        return FlightPath(
            [FPt(p.position.rotate_about(angle_rad, pivot), p.action) for p in self.points[:-1]],
            rng=self.rng,
        )

    def _segment_index(self, path_frac: float) -> tuple[int, float]:
        dist = (path_frac % 1.0) * self.total_dist
        idx = int(np.searchsorted(self._cumulative, dist, side="right")) - 1
        idx = min(max(idx, 0), len(self.points) - 2)
        return idx, dist

    def target_pos(self, path_frac: float) -> Vector2D:
        """
        Point on the loop at path_frac * total_dist (path_frac taken mod 1).

        Args:
            path_frac: Fraction of the path travelled.

        Returns:
            Target position in battle space.
        """
        idx, dist = self._segment_index(path_frac)
        start, end = self.points[idx], self.points[idx + 1]
        seg_len = end.dist_to - start.dist_to
        if seg_len <= 0:
            return start.position.copy()
        frac_between = min(1.0, (dist - start.dist_to) / seg_len)
        return interpolate(start.position, end.position, frac_between)

    def action(self, path_frac: float) -> PathAction:
        """
        Pending recommended action at the current path fraction.

        Entering a new segment latches the action of its first vertex. A
        LAUNCH vertex only proposes a launch with LAUNCH_KEEP_PROBABILITY.
        """
        idx, _ = self._segment_index(path_frac)
        if idx != self._last_idx:
            self._last_idx = idx
            self.action_pending = self.points[idx].action
            if self.action_pending is PathAction.LAUNCH:
                if self.rng.random() >= LAUNCH_KEEP_PROBABILITY:
                    self.action_pending = PathAction.NONE
        return self.action_pending

    def action_taken(self) -> None:
        """Consume the pending action until the next segment transition."""
        self.action_pending = PathAction.NONE

    def __len__(self) -> int:
        return len(self.points)


def _to_fpt(point: PointLike) -> FPt:
    if isinstance(point, FPt):
        return FPt(point.position.copy(), point.action)
    x, y, action = point
    return FPt(Vector2D(float(x), float(y)), action)


# =============================================================================
# TRACKS
# =============================================================================

def classify_track(track: Sequence[float], home: Optional[Vector2D] = None) -> list[FPt]:
    """
    Turn flat (x, y, tag) track data into tagged path vertices.

    The first vertex and vertices tagged TRACK_TAG_FILL become FILL. A vertex
    becomes LAUNCH when the incoming and outgoing path directions both point
    toward the home ship and lie on opposite sides of the line to it, so the
    ship's velocity sweeps across the home ship there.
    """
    if len(track) % 3 != 0:
        raise ValueError("Track data must be (x, y, tag) triples")
    home = home if home is not None else Vector2D.zero()
    n = len(track) // 3
    xs = [track[i * 3] for i in range(n)]
    ys = [track[i * 3 + 1] for i in range(n)]
    tags = [track[i * 3 + 2] for i in range(n)]

    points: list[FPt] = []
    for i in range(n):
        action = PathAction.NONE
        if i == 0 or tags[i] == TRACK_TAG_FILL:
            action = PathAction.FILL
        else:
            prv = i - 1
            nxt = (i + 1) % n
            to_home_x, to_home_y = home.x - xs[i], home.y - ys[i]
            in_x, in_y = xs[i] - xs[prv], ys[i] - ys[prv]
            out_x, out_y = xs[nxt] - xs[i], ys[nxt] - ys[i]
            approaching = (to_home_x * in_x + to_home_y * in_y > 0
                           and to_home_x * out_x + to_home_y * out_y > 0)
            straddles = (cross_z(in_x, in_y, to_home_x, to_home_y)
                         * cross_z(out_x, out_y, to_home_x, to_home_y)) < 0
            if approaching and straddles:
                action = PathAction.LAUNCH
        points.append(FPt(Vector2D(xs[i], ys[i]), action))
    return points


def track_path(track_idx: int, rng: Optional[random.Random] = None,
               home: Optional[Vector2D] = None) -> FlightPath:
    """FlightPath for entry track_idx (mod the table size) of TRACKS."""
    return FlightPath(classify_track(TRACKS[track_idx % len(TRACKS)], home), rng=rng)
