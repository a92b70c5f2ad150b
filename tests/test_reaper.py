"""
Tests for the expired pin reaper.
"""
from datetime import timedelta

from pinmap.core.lifecycle import EXPIRY_HOURS
from pinmap.jobs.reaper import reap_expired_pins
from pinmap.models.pin import Pin, PinLike

from conftest import NOW


class TestReaper:
    def test_deletes_only_expired_pins(self, db, make_user, make_pin):
        old_owner = make_user("Old")
        live_owner = make_user("Live")
        fan = make_user("Fan")

        expired = make_pin(old_owner, created_at=NOW - timedelta(hours=EXPIRY_HOURS + 1))
        live = make_pin(live_owner, created_at=NOW - timedelta(days=10))
        db.add(PinLike(pin_id=expired.id, user_id=fan.id, created_at=NOW))
        db.commit()

        assert reap_expired_pins(db, NOW) == 1

        assert [p.id for p in db.query(Pin).all()] == [live.id]
        assert db.query(PinLike).count() == 0

    def test_future_pins_expire_from_arrival(self, db, make_user, make_pin):
        owner = make_user()
        # Created long ago, arrived recently: still live
        make_pin(
            owner,
            created_at=NOW - timedelta(hours=EXPIRY_HOURS * 2),
            arrival_time=NOW - timedelta(days=2),
        )

        assert reap_expired_pins(db, NOW) == 0
        assert db.query(Pin).count() == 1

    def test_idempotent(self, db, make_user, make_pin):
        owner = make_user()
        make_pin(owner, created_at=NOW - timedelta(hours=EXPIRY_HOURS))

        assert reap_expired_pins(db, NOW) == 1
        assert reap_expired_pins(db, NOW) == 0
