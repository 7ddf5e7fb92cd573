#!/usr/bin/env python3
"""
Text Torpedo Module for Battle Keys

Implements the letter torpedoes enemy ships tow and fire:
- TxTorpedo: one character of an engine sequence; follows a leader,
  flies free once released, or is dragged away once pulsed
- TorpedoGroup: the chain of torpedoes for one engine sequence, its
  cosmetic match count, and the destruction handshake with a pulse
- GroupRegistry: every live group indexed by engine sequence (duplicates
  allowed, two ships may carry the same word)

Chains snake behind their ship: the first torpedo follows the ship, every
other torpedo follows the torpedo before it, each keeping a minimum
spacing from its leader.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Iterator, Optional

from .events import InvariantViolation
from .vecmath import Vector2D

if TYPE_CHECKING:
    from .enemy import EnemyShip
    from .homeship import HomeShip
    from .pulse import Pulse
    from .view import BattleView


# =============================================================================
# CONSTANTS
# =============================================================================

TORPEDO_MAX_SPEED = 0.5  # bsu/s
TORPEDO_MAX_ACCEL = 1.0  # bsu/s^2, braking after release
TORPEDO_MIN_SPEED = 0.1  # Released torpedoes never brake below this
PULSED_SPEED = 0.5  # Speed of a chain being dragged off by a pulse

FIRST_MIN_DIST = 0.03  # Spacing behind the ship for the first letter
MIN_DIST = 0.04  # Spacing between consecutive letters


# =============================================================================
# TEXT TORPEDO
# =============================================================================

class TorpedoState(Enum):
    """Torpedo flight states."""
    FOLLOW = auto()    # Trailing its leader (ship or previous torpedo)
    RELEASED = auto()  # Fired at the home ship, no more steering
    PULSED = auto()    # Hit by a pulse, flying away from the home ship


@dataclass(eq=False)
class TxTorpedo:
    """
    A single character torpedo.

    Attributes:
        char: Character carried by this torpedo.
        position: Current position (bsu).
        velocity: Current velocity (bsu/s), used once released.
        leader: Entity this torpedo trails while following (anything with
            a position: the parent ship or the previous torpedo).
        home: The home ship, for contact damage and fly-away direction.
        min_dist: Spacing kept from the leader while following.
        max_speed: Top speed while following or pulsed.
        state: Current flight state.
        angle: Heading toward the leader, for drawing the glyph.
    """
    char: str
    position: Vector2D
    velocity: Vector2D
    leader: Any
    home: HomeShip
    min_dist: float = MIN_DIST
    max_speed: float = TORPEDO_MAX_SPEED
    state: TorpedoState = TorpedoState.FOLLOW
    angle: float = 0.0
    max_accel: float = field(default=TORPEDO_MAX_ACCEL, repr=False)
    min_speed: float = field(default=TORPEDO_MIN_SPEED, repr=False)

    @property
    def target_pt(self) -> Vector2D:
        """Point this torpedo trails while following."""
        return self.leader.position

    def launch(self, velocity: Vector2D) -> None:
        """Release the torpedo with the given initial velocity."""
        self.velocity = velocity.copy()
        self.state = TorpedoState.RELEASED

    def move_fwd(self, delta_ms: float) -> None:
        """
        Update position and state for one tick.

        Args:
            delta_ms: Time since the last update (ms).
        """
        dt = delta_ms / 1000.0

        if self.state is TorpedoState.RELEASED:
            self.position = self.position + self.velocity * dt
            brake = self.max_accel * dt
            if self.velocity.magnitude - brake > self.min_speed:
                self.velocity = self.velocity - self.velocity.normalized() * brake

            if self.home.position.distance_to(self.position) < self.home.contact_radius:
                self.home.cause_damage(self)

        elif self.state is TorpedoState.PULSED:
            away = (self.position - self.home.position).normalized()
            self.position = self.position + away * (self.max_speed * dt)

        else:
            delta_d = self.target_pt - self.position
            self.angle = delta_d.angle()
            # Aim for the point min_dist short of the leader; when closer than
            # min_dist this points away and pushes the letters apart.
            delta_d = delta_d - delta_d.normalized() * self.min_dist
            dist = delta_d.magnitude
            max_dist = self.max_speed * dt
            if dist > max_dist:
                self.position = self.position + delta_d.normalized() * max_dist
            elif dist > self.min_dist:
                self.position = self.position + delta_d


# =============================================================================
# TORPEDO GROUP
# =============================================================================

_group_ids = itertools.count(1)


class TorpedoGroup:
    """
    Chain of torpedoes sharing one engine sequence.

    A new group registers itself in the registry under its sequence. The
    parent ship is advanced by its current group; a launched group is
    detached (parent_ship is None) and lives on its own.

    Attributes:
        group_id: Stable identifier for snapshots and logs.
        seq: Engine sequence (one character per torpedo).
        start_time: Creation time (ms).
        torps: Torpedoes in chain order.
        match_ct: Length of the typed prefix of seq currently highlighted.
        locked: Pulse that is destroying this group, if any.
        parent_ship: Ship towing this group, None once detached.
        seen_in_view: True once any torpedo has been inside the view.
    """

    def __init__(
        self,
        seq: str,
        torps: list[TxTorpedo],
        parent_ship: Optional[EnemyShip],
        registry: GroupRegistry,
        start_time: int = 0,
    ) -> None:
        self.group_id = next(_group_ids)
        self.seq = seq
        self.start_time = start_time
        self.torps = torps
        self.match_ct = 0
        self.locked: Optional[Pulse] = None
        self.parent_ship = parent_ship
        self.seen_in_view = False
        registry.register(self)

    def update_match_ct(self, active_pulse_str: str) -> bool:
        """
        Update the cosmetic match count against the active typed buffer.

        match_ct becomes the longest prefix of seq that the buffer ends with.
        A full match resets match_ct to 0, since destruction happens through
        pulse contact rather than highlighting.

        Args:
            active_pulse_str: The home ship's active typed characters.

        Returns:
            True if the buffer affects this group (partial or full match).
        """
        self.match_ct = 0
        for i in range(1, len(self.seq) + 1):
            if active_pulse_str.endswith(self.seq[:i]):
                self.match_ct = i
        if self.seq and self.match_ct == len(self.seq):
            self.match_ct = 0
            return True
        return self.match_ct != 0

    def lock(self, pulse: Pulse, closest_torp: Optional[TxTorpedo]) -> None:
        """
        Mark the group as destroyed by pulse.

        The parent ship explodes, every torpedo slows to PULSED_SPEED and
        follows, and the torpedo the pulse touched leads the chain off
        screen.
        """
        if self.parent_ship is not None:
            self.parent_ship.lock(pulse)
        self.locked = pulse
        for torp in self.torps:
            torp.state = TorpedoState.FOLLOW
            torp.max_speed = PULSED_SPEED
        if closest_torp is not None:
            closest_torp.state = TorpedoState.PULSED
            self.torps[0].leader = closest_torp

    def detach(self) -> None:
        """Cut the group loose from its parent ship."""
        self.parent_ship = None

    def first_pos(self) -> Optional[Vector2D]:
        """Position of the parent ship, else of the first torpedo."""
        if self.parent_ship is not None:
            return self.parent_ship.position
        if self.torps:
            return self.torps[0].position
        return None

    def move_fwd(self, view: BattleView, delta_ms: float) -> bool:
        """
        Advance the parent ship (if any) and every torpedo.

        Returns:
            True if the group should be removed: nothing left in view and
            the group was destroyed or its ship left; or it is detached and
            empty; or it is detached and all its torpedoes have left view.
        """
        parent_to_remove = False
        if self.parent_ship is not None:
            parent_to_remove = self.parent_ship.move_fwd(view, delta_ms)

        any_in_view = False
        for torp in self.torps:
            torp.move_fwd(delta_ms)
            if view.in_view(torp.position):
                any_in_view = True
        if any_in_view:
            self.seen_in_view = True

        if self.parent_ship is None and not self.torps:
            return True
        if any_in_view:
            return False
        if self.locked is not None or parent_to_remove:
            return True
        return self.parent_ship is None and self.seen_in_view

    @staticmethod
    def get_focused(registry: GroupRegistry, point: Vector2D) -> Optional[TorpedoGroup]:
        """
        Group the home ship should aim at.

        Minimises (len(seq) - match_ct, distance to point) in lexicographic
        order. Groups without a sequence or a position are skipped.

        Returns:
            The focused group, or None if there is nothing to aim at.
        """
        best: Optional[TorpedoGroup] = None
        best_key: Optional[tuple[int, float]] = None
        for group in registry:
            if not group.seq:
                continue
            pos = group.first_pos()
            if pos is None:
                continue
            key = (len(group.seq) - group.match_ct, pos.distance_to(point))
            if best_key is None or key < best_key:
                best, best_key = group, key
        return best

    @staticmethod
    def move_all(registry: GroupRegistry, view: BattleView, delta_ms: float) -> list[TorpedoGroup]:
        """
        Advance every group once and cull the dead ones.

        Groups created while advancing (launch, refill) are first moved on
        the next tick.

        Returns:
            The groups removed this tick.

        Raises:
            InvariantViolation: A group failed to advance; carries that group.
        """
        removed = []
        for group in list(registry):
            try:
                done = group.move_fwd(view, delta_ms)
            except InvariantViolation:
                raise
            except Exception as e:
                raise InvariantViolation(f"{type(e).__name__} advancing {group.seq!r}: {e}", group) from e
            if done:
                registry.discard(group)
                removed.append(group)
        registry.prune()
        return removed

    def __repr__(self) -> str:
        parent = "attached" if self.parent_ship is not None else "detached"
        return f"TorpedoGroup(#{self.group_id} {self.seq!r} match={self.match_ct} {parent})"


# =============================================================================
# GROUP REGISTRY
# =============================================================================

class GroupRegistry:
    """
    Multimap from engine sequence to live torpedo groups.

    Iteration walks every group in insertion order of sequences. Empty
    buckets are dropped by prune() and by discard().
    """

    def __init__(self) -> None:
        self._groups: dict[str, list[TorpedoGroup]] = {}

    def register(self, group: TorpedoGroup) -> None:
        self._groups.setdefault(group.seq, []).append(group)

    def discard(self, group: TorpedoGroup) -> None:
        """Remove a group if present."""
        bucket = self._groups.get(group.seq)
        if bucket is None:
            return
        for i, candidate in enumerate(bucket):
            if candidate is group:
                del bucket[i]
                break
        if not bucket:
            del self._groups[group.seq]

    def lookup(self, seq: str) -> list[TorpedoGroup]:
        """All live groups carrying exactly seq."""
        return list(self._groups.get(seq, ()))

    def is_live(self, group: TorpedoGroup) -> bool:
        return any(candidate is group for candidate in self._groups.get(group.seq, ()))

    def prune(self) -> None:
        for seq in [s for s, bucket in self._groups.items() if not bucket]:
            del self._groups[seq]

    def is_empty(self) -> bool:
        return not any(self._groups.values())

    def __contains__(self, seq: object) -> bool:
        return bool(self._groups.get(seq))  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[TorpedoGroup]:
        for bucket in list(self._groups.values()):
            yield from list(bucket)

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._groups.values())
