"""
Tests for pin lifecycle status and opacity decay.
"""
from datetime import timedelta
from types import SimpleNamespace

import pytest

from pinmap.core.lifecycle import (
    EXPIRY_HOURS,
    GHOST_HOURS,
    STATUS_ACTIVE,
    STATUS_EXPIRED,
    STATUS_GHOST,
    STATUS_OLD_GHOST,
    STATUS_RECENTLY_ARRIVED,
    STATUS_SCHEDULED,
    compute_lifecycle,
    decay_opacity,
    expiry_cutoff,
    is_expired,
)

from conftest import NOW


def current_pin(age_hours):
    return SimpleNamespace(
        pin_type="current",
        created_at=NOW - timedelta(hours=age_hours),
        arrival_time=None,
    )


def future_pin(arrives_in_hours, created_hours_ago=1):
    return SimpleNamespace(
        pin_type="future",
        created_at=NOW - timedelta(hours=created_hours_ago),
        arrival_time=NOW + timedelta(hours=arrives_in_hours),
    )


class TestCurrentPins:
    def test_fresh_pin_is_active_and_opaque(self):
        lifecycle = compute_lifecycle(current_pin(0), NOW)

        assert lifecycle.status == STATUS_ACTIVE
        assert lifecycle.opacity == 1.0
        assert lifecycle.is_active is True
        assert lifecycle.age_hours == 0

    def test_just_under_a_day_is_still_active(self):
        lifecycle = compute_lifecycle(current_pin(23.9), NOW)

        assert lifecycle.status == STATUS_ACTIVE
        assert lifecycle.opacity == 1.0

    def test_25_hours_is_a_fading_ghost(self):
        lifecycle = compute_lifecycle(current_pin(25), NOW)

        assert lifecycle.status == STATUS_GHOST
        assert lifecycle.is_active is False
        assert lifecycle.opacity < 1.0
        assert lifecycle.opacity == pytest.approx(0.9951, abs=1e-4)

    def test_one_week_becomes_old_ghost_at_floor(self):
        lifecycle = compute_lifecycle(current_pin(GHOST_HOURS), NOW)

        assert lifecycle.status == STATUS_OLD_GHOST
        assert lifecycle.opacity == pytest.approx(0.3)

    def test_retention_window_expires(self):
        lifecycle = compute_lifecycle(current_pin(EXPIRY_HOURS), NOW)

        assert lifecycle.status == STATUS_EXPIRED
        assert lifecycle.is_expired
        assert lifecycle.opacity == 0.0

    def test_is_expired_matches_cutoff(self):
        assert not is_expired(current_pin(EXPIRY_HOURS - 1), NOW)
        assert is_expired(current_pin(EXPIRY_HOURS + 1), NOW)
        assert expiry_cutoff(NOW) == NOW - timedelta(hours=EXPIRY_HOURS)


class TestFuturePins:
    def test_before_arrival_is_scheduled(self):
        lifecycle = compute_lifecycle(future_pin(2), NOW)

        assert lifecycle.status == STATUS_SCHEDULED
        assert lifecycle.opacity == 1.0
        assert lifecycle.is_active is True

    def test_shortly_after_arrival_is_recently_arrived(self):
        lifecycle = compute_lifecycle(future_pin(-1, created_hours_ago=48), NOW)

        assert lifecycle.status == STATUS_RECENTLY_ARRIVED
        assert lifecycle.opacity == 1.0
        assert lifecycle.age_hours == pytest.approx(1.0)

    def test_decay_measured_from_arrival_not_creation(self):
        # Created 10 days ago, arrived 5 hours ago
        lifecycle = compute_lifecycle(future_pin(-5, created_hours_ago=240), NOW)

        assert lifecycle.status == STATUS_ACTIVE
        assert lifecycle.opacity == 1.0

    def test_arrived_long_ago_is_ghost(self):
        lifecycle = compute_lifecycle(future_pin(-30, created_hours_ago=100), NOW)

        assert lifecycle.status == STATUS_GHOST


class TestDecayCurve:
    def test_opacity_never_increases_with_age(self):
        ages = [h * 0.5 for h in range(0, 2 * (EXPIRY_HOURS + 10))]
        opacities = [decay_opacity(a) for a in ages]

        assert all(0.0 <= o <= 1.0 for o in opacities)
        assert all(a >= b for a, b in zip(opacities, opacities[1:]))

    def test_floor_before_expiry(self):
        assert decay_opacity(EXPIRY_HOURS - 0.001) == pytest.approx(0.1, abs=1e-3)
        assert decay_opacity(EXPIRY_HOURS) == 0.0
