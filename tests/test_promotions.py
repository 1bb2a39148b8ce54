import threading
import uuid
from datetime import timedelta, timezone
from decimal import Decimal

import pytest

from models.promotion import Promotion
from services import promotions as promotion_service
from utils.clock import utcnow
from utils.errors import NotFound, Forbidden, InvalidArgument, Conflict
from utils.scheduler import PeriodicTask


class TestCreatePromotion:
    def test_owner_creates_promotion(self, db, chef, make_plat):
        plat = make_plat(chef)

        promotion = promotion_service.create_promotion(db, chef, plat.id, 15, utcnow() + timedelta(days=3))

        assert promotion.is_active is True
        assert promotion.discount_percentage == Decimal("15")
        assert promotion_service.get_active_promotion(db, plat.id).id == promotion.id

    def test_other_chef_is_forbidden(self, db, make_user, chef, make_plat):
        plat = make_plat(chef)
        with pytest.raises(Forbidden):
            promotion_service.create_promotion(db, make_user("chef"), plat.id, 10, utcnow() + timedelta(days=1))

    def test_unknown_dish(self, db, chef):
        with pytest.raises(NotFound):
            promotion_service.create_promotion(db, chef, uuid.uuid4(), 10, utcnow() + timedelta(days=1))

    @pytest.mark.parametrize("pct", [0, -3, 100.5])
    def test_percentage_bounds(self, db, chef, make_plat, pct):
        plat = make_plat(chef)
        with pytest.raises(InvalidArgument):
            promotion_service.create_promotion(db, chef, plat.id, pct, utcnow() + timedelta(days=1))

    def test_end_must_be_in_future(self, db, chef, make_plat):
        plat = make_plat(chef)
        with pytest.raises(InvalidArgument):
            promotion_service.create_promotion(db, chef, plat.id, 10, utcnow() - timedelta(minutes=1))

    def test_end_must_follow_start(self, db, chef, make_plat):
        plat = make_plat(chef)
        now = utcnow()
        with pytest.raises(InvalidArgument):
            promotion_service.create_promotion(db, chef, plat.id, 10, now + timedelta(days=1),
                                               starts_at=now + timedelta(days=2))

    def test_aware_end_date_is_stored_as_naive_utc(self, db, chef, make_plat):
        plat = make_plat(chef)
        ends_at = (utcnow() + timedelta(days=1)).replace(microsecond=0)

        promotion = promotion_service.create_promotion(db, chef, plat.id, 10, ends_at.replace(tzinfo=timezone.utc))

        assert promotion.ends_at == ends_at
        assert promotion.ends_at.tzinfo is None

    def test_second_active_promotion_conflicts(self, db, chef, make_plat, make_promotion):
        plat = make_plat(chef)
        make_promotion(plat, pct="10")
        with pytest.raises(Conflict):
            promotion_service.create_promotion(db, chef, plat.id, 20, utcnow() + timedelta(days=1))


class TestManagePromotions:
    def test_list_chef_promotions(self, db, make_user, make_plat, make_promotion):
        mine, theirs = make_user("chef"), make_user("chef")
        make_promotion(make_plat(mine, name="A"))
        make_promotion(make_plat(mine, name="B"))
        make_promotion(make_plat(theirs, name="C"))

        assert len(promotion_service.list_chef_promotions(db, mine.id)) == 2

    def test_delete_by_owner_and_admin(self, db, chef, admin, make_plat, make_promotion):
        plat = make_plat(chef)
        first, second = make_promotion(plat), make_promotion(plat)

        promotion_service.delete_promotion(db, chef, first.id)
        promotion_service.delete_promotion(db, admin, second.id)

        assert db.query(Promotion).count() == 0

    def test_delete_by_stranger(self, db, chef, make_user, make_plat, make_promotion):
        promotion = make_promotion(make_plat(chef))
        with pytest.raises(Forbidden):
            promotion_service.delete_promotion(db, make_user("chef"), promotion.id)


class TestExpirySweep:
    def test_sweep_deactivates_expired_once(self, db, chef, make_plat, make_promotion):
        plat = make_plat(chef)
        now = utcnow()
        expired = make_promotion(plat, starts_at=now - timedelta(days=3), ends_at=now - timedelta(days=1))
        live = make_promotion(plat, pct="5")

        assert promotion_service.deactivate_expired_promotions(db) == 1
        assert promotion_service.deactivate_expired_promotions(db) == 0

        db.expire_all()
        assert db.get(Promotion, expired.id).is_active is False
        assert db.get(Promotion, live.id).is_active is True

    def test_sweep_with_new_session(self, session_factory, chef, make_plat, make_promotion):
        now = utcnow()
        make_promotion(make_plat(chef), starts_at=now - timedelta(days=2), ends_at=now - timedelta(hours=1))

        assert promotion_service.sweep_with_new_session(session_factory) == 1


class TestPeriodicTask:
    def test_run_once_invokes_callback(self):
        calls = []
        task = PeriodicTask("sweep-test", 60, lambda: calls.append(1))

        assert task.run_once() is True
        assert calls == [1]

    def test_overlapping_run_is_skipped(self):
        started, release = threading.Event(), threading.Event()

        def slow():
            started.set()
            release.wait(2)

        task = PeriodicTask("slow", 60, slow)
        worker = threading.Thread(target=task.run_once)
        worker.start()
        started.wait(2)

        assert task.run_once() is False

        release.set()
        worker.join(2)
        assert task.run_once() is True

    def test_exclusive_blocks_scheduled_run(self):
        calls = []
        task = PeriodicTask("guarded", 60, lambda: calls.append(1))

        with task.exclusive() as acquired:
            assert acquired is True
            assert task.run_once() is False
            with task.exclusive() as nested:
                assert nested is False

        assert calls == []
        assert task.run_once() is True
        assert calls == [1]

    def test_failure_is_logged_and_schedule_continues(self, caplog):
        runs = []

        def flaky():
            runs.append(1)
            if len(runs) == 1:
                raise RuntimeError("db down")
            return "ok"

        task = PeriodicTask("flaky", 60, flaky)

        assert task.run_once() is True
        assert task.run_once() is True
        assert len(runs) == 2
        assert "Task flaky failed" in caplog.text

    def test_background_thread_runs_and_stops(self):
        ran = threading.Event()
        task = PeriodicTask("tick", 0.01, ran.set)

        task.start()
        try:
            assert ran.wait(2)
            assert task.is_alive
        finally:
            task.stop()
        assert not task.is_alive

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            PeriodicTask("bad", 0, lambda: None)
