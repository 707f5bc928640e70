"""Tests for the game clock and the domain-separated RNG."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime

import pytest

from realmtick.core.enums import Domain
from realmtick.systems.game_day import GameClock
from realmtick.systems.rng import DeterministicRNG
from tests.helpers.world_builder import FrozenSource

EPOCH = datetime(2026, 1, 1)


class TestGameClock:
    def test_day_zero_at_epoch(self):
        clock = GameClock(EPOCH, source=FrozenSource(EPOCH))
        assert clock.game_day() == 0

    def test_day_boundaries(self):
        clock = GameClock(EPOCH, source=FrozenSource(datetime(2026, 1, 2, 23, 59)))
        assert clock.game_day() == 1
        assert clock.game_day(datetime(2026, 1, 3)) == 2

    def test_advance_and_reset(self):
        clock = GameClock(EPOCH, source=FrozenSource(datetime(2026, 1, 10, 8)))
        assert clock.advance(2) == 2
        assert clock.game_day() == 11
        assert clock.now() == datetime(2026, 1, 12, 8)
        clock.reset()
        assert clock.game_day() == 9

    def test_next_tick_time(self):
        clock = GameClock(EPOCH, source=FrozenSource(datetime(2026, 1, 10, 8, 30)))
        assert clock.next_tick_time(0) == datetime(2026, 1, 11, 0, 0)
        assert clock.next_tick_time(12) == datetime(2026, 1, 10, 12, 0)


class TestDeterministicRNG:
    def test_same_inputs_same_output(self):
        a, b = DeterministicRNG(42), DeterministicRNG(42)
        assert a.next_float(Domain.ENCOUNTER, 7, 100) == b.next_float(Domain.ENCOUNTER, 7, 100)

    def test_domains_and_days_separate(self):
        rng = DeterministicRNG(42)
        base = rng.next_float(Domain.ENCOUNTER, 7, 100)
        assert base != rng.next_float(Domain.COMBAT, 7, 100)
        assert base != rng.next_float(Domain.ENCOUNTER, 7, 101)
        assert base != rng.next_float(Domain.ENCOUNTER, 7, 100, salt=1)

    def test_ranges(self):
        rng = DeterministicRNG(3)
        for day in range(200):
            f = rng.next_float(Domain.GATHER, 1, day)
            assert 0.0 <= f < 1.0
            assert 2 <= rng.next_int(Domain.GATHER, 1, day, 2, 5) <= 5

    def test_bool_extremes(self):
        rng = DeterministicRNG(3)
        assert not any(rng.next_bool(Domain.COMBAT, 1, d, 0.0) for d in range(50))
        assert all(rng.next_bool(Domain.COMBAT, 1, d, 1.0) for d in range(50))

    def test_choice(self):
        rng = DeterministicRNG(9)
        items = ["wolf", "bandit", "wraith"]
        picks = {rng.choice(Domain.MONSTER_PICK, 1, d, items) for d in range(100)}
        assert picks <= set(items)
        with pytest.raises(ValueError):
            rng.choice(Domain.MONSTER_PICK, 1, 1, [])
