from decimal import Decimal

import pytest

import catalog
from catalog import SubscriptionTier


class TestCoinPackages:
    def test_discounted_price(self):
        assert catalog.discounted_price("popular") == Decimal("4.491")
        assert catalog.discounted_price("starter") == Decimal("0.99")

    def test_discounted_price_minor(self):
        assert catalog.discounted_price_minor("popular") == 449
        assert catalog.discounted_price_minor("ultimate") == 3749  # 37.4925

    def test_total_coins(self):
        assert catalog.total_coins("popular") == 550
        assert catalog.total_coins("mega") == 1200

    def test_unknown_package_returns_none(self):
        assert catalog.get_coin_package("nope") is None
        assert catalog.discounted_price("nope") is None
        assert catalog.discounted_price_minor("nope") is None
        assert catalog.total_coins("nope") is None


class TestGifts:
    def test_gift_cost(self):
        assert catalog.gift_cost("rose") == 1
        assert catalog.gift_cost("crown", quantity=3) == 150

    def test_unknown_gift(self):
        assert catalog.get_gift("plane") is None
        assert catalog.gift_cost("plane", 2) is None


class TestSubscriptions:
    def test_plan_lookup(self):
        plan = catalog.get_subscription_plan("creator")

        assert plan.price == Decimal("19.99")
        assert plan.earnings_multiplier == Decimal("3")
        assert catalog.get_subscription_plan("platinum") is None

    @pytest.mark.parametrize("tier,price", [
        ("silver", Decimal("4.99")),
        (SubscriptionTier.GOLD, Decimal("9.99")),
        ("diamond", Decimal("19.99")),
    ])
    def test_tier_prices(self, tier, price):
        assert catalog.subscription_tier_price(tier) == price

    def test_unknown_tier(self):
        assert catalog.subscription_tier_price("bronze") is None


class TestBadgesAndEarnings:
    def test_badges_sorted(self):
        keys = [(b.point_requirement, b.id) for b in catalog.badges()]

        assert keys == sorted(keys)
        assert len(keys) == 8

    def test_referral_earnings(self):
        # 3 signups at $5 + 10% of $49.90
        assert catalog.referral_earnings(3, 4990) == 1500 + 499

    def test_creator_earnings(self):
        # 1000 views, 100 likes, 10 shares = $1 + $1 + $0.50
        assert catalog.creator_earnings(1000, 100, 10) == 250
        assert catalog.creator_earnings(1000, 100, 10, multiplier=Decimal("1.5")) == 375
