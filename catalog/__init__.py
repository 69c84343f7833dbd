"""
Static catalogs: coin packages, gifts, subscription plans and tiers, badges,
referral reward constants. Loaded once at import, never mutated.
"""

from .data import (
    Badge,
    CoinPackage,
    Gift,
    SubscriptionPlan,
    SubscriptionTier,
    REFERRAL_REWARDS,
)
from .lookup import (
    badges,
    creator_earnings,
    discounted_price,
    discounted_price_minor,
    get_coin_package,
    get_gift,
    get_subscription_plan,
    gift_cost,
    referral_earnings,
    subscription_tier_price,
    total_coins,
)

__all__ = [
    "Badge",
    "CoinPackage",
    "Gift",
    "SubscriptionPlan",
    "SubscriptionTier",
    "REFERRAL_REWARDS",
    "badges",
    "creator_earnings",
    "discounted_price",
    "discounted_price_minor",
    "get_coin_package",
    "get_gift",
    "get_subscription_plan",
    "gift_cost",
    "referral_earnings",
    "subscription_tier_price",
    "total_coins",
]
