"""
Pure catalog queries.

Every lookup returns None for an unknown id instead of raising; callers decide
what absence means for them.
"""

from decimal import Decimal
from typing import Optional, Union

from wallet.money import Rate, apply_rate, round_minor, to_minor_units, validate_amount

from .data import (
    BADGES,
    COIN_PACKAGES,
    EARNINGS_PER_LIKE,
    EARNINGS_PER_SHARE,
    EARNINGS_PER_VIEW,
    GIFTS,
    REFERRAL_REWARDS,
    SUBSCRIPTION_PLANS,
    SUBSCRIPTION_TIER_PRICES,
    Badge,
    CoinPackage,
    Gift,
    SubscriptionPlan,
    SubscriptionTier,
)

_PACKAGES_BY_ID = {p.id: p for p in COIN_PACKAGES}
_GIFTS_BY_ID = {g.id: g for g in GIFTS}
_PLANS_BY_ID = {p.id: p for p in SUBSCRIPTION_PLANS}


def get_coin_package(package_id: str) -> Optional[CoinPackage]:
    return _PACKAGES_BY_ID.get(package_id)


def discounted_price(package_id: str) -> Optional[Decimal]:
    """price * (1 - discount/100), exact."""
    pkg = get_coin_package(package_id)
    if pkg is None:
        return None
    return pkg.price * (1 - Decimal(pkg.discount) / 100)


def discounted_price_minor(package_id: str) -> Optional[int]:
    price = discounted_price(package_id)
    if price is None:
        return None
    return to_minor_units(price)


def total_coins(package_id: str) -> Optional[int]:
    pkg = get_coin_package(package_id)
    if pkg is None:
        return None
    return pkg.coins + pkg.bonus


def get_gift(gift_id: str) -> Optional[Gift]:
    return _GIFTS_BY_ID.get(gift_id)


def gift_cost(gift_id: str, quantity: int = 1) -> Optional[int]:
    gift = get_gift(gift_id)
    if gift is None:
        return None
    return gift.price * validate_amount(quantity)


def get_subscription_plan(plan_id: str) -> Optional[SubscriptionPlan]:
    return _PLANS_BY_ID.get(plan_id)


def subscription_tier_price(tier: Union[SubscriptionTier, str]) -> Optional[Decimal]:
    try:
        return SUBSCRIPTION_TIER_PRICES[SubscriptionTier(tier)]
    except ValueError:
        return None


def badges() -> tuple[Badge, ...]:
    return BADGES


def referral_earnings(
    referrals_count: int,
    subscription_earnings: int = 0,
    commission_rate: Rate = REFERRAL_REWARDS.subscription_commission_rate,
) -> int:
    """Signup bonuses plus subscription commission, in cents."""
    signup_bonus = validate_amount(referrals_count) * to_minor_units(REFERRAL_REWARDS.referrer_cash)
    return signup_bonus + apply_rate(subscription_earnings, commission_rate)


def creator_earnings(views: int, likes: int, shares: int, multiplier: Union[Decimal, int, str] = 1) -> int:
    """Engagement payout in cents, scaled by the creator's plan multiplier."""
    base = (
        validate_amount(views) * EARNINGS_PER_VIEW
        + validate_amount(likes) * EARNINGS_PER_LIKE
        + validate_amount(shares) * EARNINGS_PER_SHARE
    )
    return round_minor((base * Decimal(str(multiplier))).scaleb(2))
