import uuid
from datetime import timedelta
from decimal import Decimal

import pytest

from services.pricing import apply_discount, resolve_effective_price, to_money
from utils.clock import utcnow
from utils.errors import NotFound


class TestApplyDiscount:
    @pytest.mark.parametrize(
        "price, pct, expected",
        [
            ("20.00", "10", "18.00"),
            ("9.99", "15", "8.49"),
            ("10.00", "0", "10.00"),
            ("10.00", "100", "0.00"),
            ("0.05", "50", "0.03"),
        ],
    )
    def test_discounted_price(self, price, pct, expected):
        assert apply_discount(Decimal(price), pct) == Decimal(expected)

    @pytest.mark.parametrize("pct", ["-5", "150"])
    def test_percentage_is_clamped(self, pct):
        result = apply_discount(Decimal("12.50"), pct)
        assert Decimal("0") <= result <= Decimal("12.50")

    def test_to_money_rounds_half_up(self):
        assert to_money("2.345") == Decimal("2.35")
        assert to_money(1) == Decimal("1.00")


class TestResolveEffectivePrice:
    def test_no_promotion_returns_listed_price(self, db, chef, make_plat):
        plat = make_plat(chef, price="14.90")

        price = resolve_effective_price(db, plat.id)

        assert price.unit_price == Decimal("14.90")
        assert price.original_price == Decimal("14.90")
        assert price.promotion is None

    def test_active_promotion_applies(self, db, chef, make_plat, make_promotion):
        plat = make_plat(chef, price="20.00")
        promotion = make_promotion(plat, pct="10")

        price = resolve_effective_price(db, plat.id)

        assert price.unit_price == Decimal("18.00")
        assert price.original_price == Decimal("20.00")
        assert price.promotion.id == promotion.id

    def test_inactive_promotion_is_ignored(self, db, chef, make_plat, make_promotion):
        plat = make_plat(chef, price="20.00")
        make_promotion(plat, pct="50", is_active=False)

        assert resolve_effective_price(db, plat.id).unit_price == Decimal("20.00")

    def test_promotion_outside_window_is_ignored(self, db, chef, make_plat, make_promotion):
        plat = make_plat(chef, price="20.00")
        now = utcnow()
        make_promotion(plat, pct="50", starts_at=now + timedelta(days=1), ends_at=now + timedelta(days=2))
        make_promotion(plat, pct="30", starts_at=now - timedelta(days=2), ends_at=now - timedelta(days=1))

        assert resolve_effective_price(db, plat.id).unit_price == Decimal("20.00")

    def test_end_of_window_is_exclusive(self, db, chef, make_plat, make_promotion):
        plat = make_plat(chef, price="20.00")
        now = utcnow()
        promotion = make_promotion(plat, pct="50", starts_at=now - timedelta(days=1), ends_at=now + timedelta(hours=1))

        assert resolve_effective_price(db, plat.id, as_of=promotion.ends_at).unit_price == Decimal("20.00")
        assert resolve_effective_price(db, plat.id, as_of=promotion.starts_at).unit_price == Decimal("10.00")

    def test_overlapping_promotions_highest_discount_wins(self, db, chef, make_plat, make_promotion):
        plat = make_plat(chef, price="20.00")
        make_promotion(plat, pct="10")
        best = make_promotion(plat, pct="25")
        make_promotion(plat, pct="15")

        price = resolve_effective_price(db, plat.id)

        assert price.promotion.id == best.id
        assert price.unit_price == Decimal("15.00")

    def test_equal_discounts_most_recent_wins(self, db, chef, make_plat, make_promotion):
        plat = make_plat(chef, price="20.00")
        now = utcnow()
        make_promotion(plat, pct="10", created_at=now - timedelta(hours=2))
        latest = make_promotion(plat, pct="10", created_at=now - timedelta(minutes=5))

        assert resolve_effective_price(db, plat.id).promotion.id == latest.id

    def test_price_never_exceeds_original(self, db, chef, make_plat, make_promotion):
        plat = make_plat(chef, price="7.35")
        for pct in ("0.5", "33.33", "99.99"):
            make_promotion(plat, pct=pct)
            price = resolve_effective_price(db, plat.id)
            assert Decimal("0") <= price.unit_price <= price.original_price

    def test_unknown_dish_raises_not_found(self, db):
        with pytest.raises(NotFound):
            resolve_effective_price(db, uuid.uuid4())
