#!/usr/bin/env python3
"""
Tests for text torpedoes, torpedo groups and the group registry.

Tests cover:
1. Torpedo FOLLOW spacing, RELEASED braking and contact, PULSED fly-away
2. Match counting against the typed buffer
3. Locking a group for destruction
4. Group removal rules
5. Focused group selection
6. Registry multimap behaviour
"""

import pytest

from battlekeys.events import InvariantViolation
from battlekeys.torpedo import (
    FIRST_MIN_DIST,
    MIN_DIST,
    PULSED_SPEED,
    TORPEDO_MIN_SPEED,
    GroupRegistry,
    TorpedoGroup,
    TorpedoState,
    TxTorpedo,
)
from battlekeys.vecmath import Vector2D
from battlekeys.view import BattleView


class Anchor:
    """Fixed leader for a torpedo."""

    def __init__(self, x, y):
        self.position = Vector2D(x, y)


def make_torp(game, x=0.0, y=0.0, leader=None, min_dist=MIN_DIST):
    return TxTorpedo(
        char="a",
        position=Vector2D(x, y),
        velocity=Vector2D.zero(),
        leader=leader if leader is not None else Anchor(x, y),
        home=game.home,
        min_dist=min_dist,
    )


@pytest.fixture
def view():
    return BattleView(2.0)


@pytest.fixture
def registry():
    return GroupRegistry()


# =============================================================================
# TX TORPEDO TESTS
# =============================================================================

class TestTxTorpedoFollow:
    """Tests for chain following."""

    def test_moves_at_most_max_speed(self, game):
        torp = make_torp(game, leader=Anchor(0.5, 0))
        torp.move_fwd(100)
        assert torp.position.x == pytest.approx(0.05)
        assert torp.angle == pytest.approx(0.0)

    def test_settles_behind_leader(self, game):
        torp = make_torp(game, leader=Anchor(0.5, 0))
        for _ in range(200):
            torp.move_fwd(16)
        gap = torp.position.distance_to(Vector2D(0.5, 0))
        assert MIN_DIST <= gap + 1e-9
        assert gap <= 2 * MIN_DIST + 1e-9

    def test_tracks_moving_leader(self, game):
        leader = Anchor(0.2, 0)
        torp = make_torp(game, leader=leader)
        for _ in range(50):
            torp.move_fwd(16)
        leader.position = Vector2D(0.2, 0.3)
        for _ in range(100):
            torp.move_fwd(16)
        assert torp.position.distance_to(leader.position) <= 2 * MIN_DIST + 1e-9

    def test_first_torpedo_spacing_is_smaller(self):
        assert FIRST_MIN_DIST < MIN_DIST


class TestTxTorpedoReleased:
    """Tests for released torpedoes."""

    def test_launch_sets_state_and_velocity(self, game):
        torp = make_torp(game, 0.5, 0)
        torp.launch(Vector2D(-0.4, 0))
        assert torp.state is TorpedoState.RELEASED
        assert torp.velocity == Vector2D(-0.4, 0)

    def test_brakes_but_never_below_min_speed(self, game):
        torp = make_torp(game, 0.9, 0.9)
        torp.launch(Vector2D(0.5, 0))
        speeds = []
        for _ in range(50):
            torp.move_fwd(100)
            speeds.append(torp.velocity.magnitude)
        assert speeds[0] < 0.5
        assert min(speeds) >= TORPEDO_MIN_SPEED

    def test_contact_damages_home(self, game):
        torp = make_torp(game, 0.1, 0)
        torp.launch(Vector2D(-0.5, 0))
        torp.move_fwd(100)
        assert torp in game.home.hit_torps
        assert game.home.health == game.config.home_health - 1

    def test_same_torpedo_damages_once(self, game):
        torp = make_torp(game, 0.07, 0)
        torp.launch(Vector2D(-0.1, 0))
        for _ in range(5):
            torp.move_fwd(100)
        assert game.home.health == game.config.home_health - 1


class TestTxTorpedoPulsed:
    """Tests for torpedoes dragged away by a pulse."""

    def test_flies_away_from_home(self, game):
        torp = make_torp(game, 0.3, 0.4)
        torp.state = TorpedoState.PULSED
        torp.max_speed = PULSED_SPEED
        torp.move_fwd(1000)
        assert torp.position == Vector2D(0.6, 0.8)


# =============================================================================
# TORPEDO GROUP TESTS
# =============================================================================

class TestMatchCount:
    """Tests for TorpedoGroup.update_match_ct."""

    @pytest.mark.parametrize("buffer,expected_ct,expected_effect", [
        ("", 0, False),
        ("h", 1, True),
        ("xho", 2, True),
        ("hom", 3, True),
        ("hh", 1, True),
        ("homx", 0, False),
        ("home", 0, True),
        ("gohome", 0, True),
    ])
    def test_update_match_ct(self, registry, buffer, expected_ct, expected_effect):
        group = TorpedoGroup("home", [], None, registry)
        assert group.update_match_ct(buffer) is expected_effect
        assert group.match_ct == expected_ct

    def test_longest_prefix_wins(self, registry):
        """For 'aab' typed as 'aa', both 'a' and 'aa' are suffixes; 2 wins."""
        group = TorpedoGroup("aab", [], None, registry)
        group.update_match_ct("aa")
        assert group.match_ct == 2

    def test_empty_sequence_has_no_effect(self, registry):
        group = TorpedoGroup("", [], None, registry)
        assert group.update_match_ct("abc") is False
        assert group.match_ct == 0

    def test_depends_only_on_buffer(self, registry):
        a = TorpedoGroup("type", [], None, registry)
        b = TorpedoGroup("type", [], None, registry)
        a.update_match_ct("zzt")
        a.update_match_ct("xty")
        b.update_match_ct("xty")
        assert a.match_ct == b.match_ct == 2


class TestGroupLock:
    """Tests for TorpedoGroup.lock."""

    def test_lock_explodes_ship_and_drags_chain(self, game, spawn):
        ship = spawn(game, "abc", 0.5, 0)
        group = ship.group
        pulse = object()
        closest = group.torps[1]
        group.lock(pulse, closest)

        assert group.locked is pulse
        assert ship.locked is pulse
        assert ship.exploded
        assert closest.state is TorpedoState.PULSED
        assert group.torps[0].leader is closest
        for torp in group.torps:
            assert torp.max_speed == PULSED_SPEED
        assert group.torps[2].state is TorpedoState.FOLLOW

    def test_lock_detached_group(self, game, registry):
        torps = [make_torp(game, 0.5, 0), make_torp(game, 0.5, 0.1)]
        group = TorpedoGroup("ab", torps, None, registry)
        group.lock("pulse", torps[0])
        assert group.locked == "pulse"
        assert torps[0].state is TorpedoState.PULSED


class TestGroupRemoval:
    """Tests for TorpedoGroup.move_fwd removal reporting."""

    def test_detached_empty_group_removed(self, registry, view):
        group = TorpedoGroup("", [], None, registry)
        assert group.move_fwd(view, 16) is True

    def test_attached_group_in_view_kept(self, game, spawn, view):
        ship = spawn(game, "ab", 0.5, 0)
        assert ship.group.move_fwd(view, 16) is False

    def test_locked_group_removed_once_off_view(self, game, registry, view):
        torp = make_torp(game, 1.5, 0)
        group = TorpedoGroup("a", [torp], None, registry)
        group.locked = object()
        assert group.move_fwd(view, 16) is True

    def test_locked_group_kept_while_visible(self, game, registry, view):
        torp = make_torp(game, 0.5, 0)
        group = TorpedoGroup("a", [torp], None, registry)
        group.locked = object()
        assert group.move_fwd(view, 16) is False

    def test_released_group_removed_after_leaving_view(self, game, registry, view):
        torp = make_torp(game, 0.95, 0.5)
        torp.launch(Vector2D(1.0, 0))
        group = TorpedoGroup("a", [torp], None, registry)
        assert group.move_fwd(view, 16) is False
        assert group.seen_in_view
        for _ in range(10):
            if group.move_fwd(view, 16):
                break
        else:
            pytest.fail("released group never removed")

    def test_released_group_kept_before_entering_view(self, game, registry, view):
        torp = make_torp(game, 1.5, 0)
        torp.launch(Vector2D(-0.5, 0))
        group = TorpedoGroup("a", [torp], None, registry)
        assert group.move_fwd(view, 16) is False

    def test_move_all_culls_and_prunes(self, game, registry, view):
        keep = TorpedoGroup("a", [make_torp(game, 0.2, 0)], None, registry)
        keep.locked = object()
        gone = TorpedoGroup("b", [], None, registry)
        removed = TorpedoGroup.move_all(registry, view, 16)
        assert removed == [gone]
        assert "b" not in registry
        assert "a" in registry and len(registry) == 1
        assert registry.is_live(keep)

    def test_move_all_reports_failing_group(self, game, registry, view, monkeypatch):
        bad = TorpedoGroup("a", [make_torp(game, 0.2, 0)], None, registry)

        def fail(view, delta_ms):
            raise ZeroDivisionError("division by zero")

        monkeypatch.setattr(bad, "move_fwd", fail)
        with pytest.raises(InvariantViolation) as excinfo:
            TorpedoGroup.move_all(registry, view, 16)
        assert excinfo.value.group is bad
        assert isinstance(excinfo.value.__cause__, ZeroDivisionError)
        assert "ZeroDivisionError" in str(excinfo.value)


class TestFocusedGroup:
    """Tests for TorpedoGroup.get_focused."""

    def test_smallest_match_deficit_wins(self, game, spawn):
        far = spawn(game, "abc", 0.9, 0).group
        near = spawn(game, "xy", 0.2, 0).group
        far.match_ct = 2
        near.match_ct = 0
        assert TorpedoGroup.get_focused(game.groups, Vector2D.zero()) is far

    def test_distance_breaks_ties(self, game, spawn):
        far = spawn(game, "ab", 0.9, 0).group
        near = spawn(game, "cd", 0.0, -0.3).group
        assert far.match_ct == near.match_ct == 0
        assert TorpedoGroup.get_focused(game.groups, Vector2D.zero()) is near

    def test_empty_registry(self, game):
        assert TorpedoGroup.get_focused(game.groups, Vector2D.zero()) is None

    def test_skips_groups_without_sequence(self, game, registry):
        TorpedoGroup("", [make_torp(game, 0.1, 0)], None, registry)
        assert TorpedoGroup.get_focused(registry, Vector2D.zero()) is None

    def test_first_pos_prefers_ship(self, game, spawn):
        ship = spawn(game, "ab", 0.4, 0.1)
        assert ship.group.first_pos() is ship.position


# =============================================================================
# REGISTRY TESTS
# =============================================================================

class TestGroupRegistry:
    """Tests for the seq -> groups multimap."""

    def test_groups_register_themselves(self, registry):
        group = TorpedoGroup("go", [], None, registry)
        assert "go" in registry
        assert registry.lookup("go") == [group]
        assert len(registry) == 1

    def test_duplicate_sequences_allowed(self, registry):
        a = TorpedoGroup("go", [], None, registry)
        b = TorpedoGroup("go", [], None, registry)
        assert registry.lookup("go") == [a, b]
        assert len(registry) == 2

    def test_discard_removes_only_that_group(self, registry):
        a = TorpedoGroup("go", [], None, registry)
        b = TorpedoGroup("go", [], None, registry)
        registry.discard(a)
        assert registry.lookup("go") == [b]
        assert not registry.is_live(a)

    def test_discard_drops_empty_bucket(self, registry):
        a = TorpedoGroup("go", [], None, registry)
        registry.discard(a)
        assert "go" not in registry
        assert registry.is_empty()

    def test_discard_unknown_is_noop(self, registry):
        other = TorpedoGroup("x", [], None, GroupRegistry())
        registry.discard(other)
        assert registry.is_empty()

    def test_lookup_missing(self, registry):
        assert registry.lookup("nope") == []

    def test_iteration_is_snapshot(self, registry):
        TorpedoGroup("a", [], None, registry)
        seen = []
        for group in registry:
            seen.append(group)
            TorpedoGroup("b", [], None, registry)
        assert len(seen) == 1
        assert len(registry) == 2
