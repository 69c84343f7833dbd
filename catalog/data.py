from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class BillingPeriod(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class SubscriptionTier(str, Enum):
    SILVER = "silver"
    GOLD = "gold"
    DIAMOND = "diamond"


@dataclass(frozen=True)
class CoinPackage:
    id: str
    name: str
    coins: int
    price: Decimal
    currency: str = "USD"
    bonus: int = 0
    discount: int = 0
    popular: bool = False


@dataclass(frozen=True)
class Gift:
    id: str
    name: str
    price: int
    icon: str
    animation: str
    category: str


@dataclass(frozen=True)
class SubscriptionPlan:
    id: str
    name: str
    price: Decimal
    currency: str = "USD"
    duration: BillingPeriod = BillingPeriod.MONTHLY
    features: tuple[str, ...] = field(default_factory=tuple)
    storage_limit_gb: int = 5
    ad_free: bool = False
    priority_support: bool = False
    earnings_multiplier: Decimal = Decimal("1")


@dataclass(frozen=True)
class Badge:
    id: str
    name: str
    description: str
    icon: str
    point_requirement: int


@dataclass(frozen=True)
class ReferralRewards:
    referrer_coins: int = 500
    referrer_cash: Decimal = Decimal("5")
    referred_coins: int = 250
    referred_cash: Decimal = Decimal("2.5")
    subscription_commission_rate: Decimal = Decimal("0.1")


COIN_PACKAGES: tuple[CoinPackage, ...] = (
    CoinPackage(id="starter", name="Starter Pack", coins=100, price=Decimal("0.99")),
    CoinPackage(id="popular", name="Popular Pack", coins=500, price=Decimal("4.99"), bonus=50, discount=10, popular=True),
    CoinPackage(id="mega", name="Mega Pack", coins=1000, price=Decimal("9.99"), bonus=200, discount=20),
    CoinPackage(id="ultimate", name="Ultimate Pack", coins=5000, price=Decimal("49.99"), bonus=1000, discount=25),
)

GIFTS: tuple[Gift, ...] = (
    Gift(id="rose", name="Rose", price=1, icon="🌹", animation="float", category="romantic"),
    Gift(id="diamond", name="Diamond", price=10, icon="💎", animation="sparkle", category="premium"),
    Gift(id="crown", name="Crown", price=50, icon="👑", animation="spin", category="premium"),
    Gift(id="rocket", name="Rocket", price=100, icon="🚀", animation="fly", category="premium"),
    Gift(id="heart", name="Heart", price=5, icon="❤️", animation="pulse", category="romantic"),
    Gift(id="star", name="Star", price=20, icon="⭐", animation="twinkle", category="premium"),
)

SUBSCRIPTION_PLANS: tuple[SubscriptionPlan, ...] = (
    SubscriptionPlan(
        id="free", name="Free", price=Decimal("0"),
        features=("Basic features", "5GB storage"),
        storage_limit_gb=5,
    ),
    SubscriptionPlan(
        id="pro", name="Pro", price=Decimal("4.99"),
        features=("Ad-free", "50GB storage", "Advanced analytics", "Custom branding"),
        storage_limit_gb=50, ad_free=True, priority_support=True,
        earnings_multiplier=Decimal("1.5"),
    ),
    SubscriptionPlan(
        id="premium", name="Premium", price=Decimal("9.99"),
        features=("Everything in Pro", "200GB storage", "Priority support", "Early access to features"),
        storage_limit_gb=200, ad_free=True, priority_support=True,
        earnings_multiplier=Decimal("2"),
    ),
    SubscriptionPlan(
        id="creator", name="Creator", price=Decimal("19.99"),
        features=("Everything in Premium", "Unlimited storage", "Creator tools", "Revenue sharing"),
        storage_limit_gb=500, ad_free=True, priority_support=True,
        earnings_multiplier=Decimal("3"),
    ),
)

SUBSCRIPTION_TIER_PRICES: dict[SubscriptionTier, Decimal] = {
    SubscriptionTier.SILVER: Decimal("4.99"),
    SubscriptionTier.GOLD: Decimal("9.99"),
    SubscriptionTier.DIAMOND: Decimal("19.99"),
}

_BADGES = (
    Badge("first_video", "First Steps", "Watch your first educational video", "🎬", 1),
    Badge("learning_master", "Learning Master", "Watch 100 educational videos", "🎓", 100),
    Badge("agriculture_expert", "Agriculture Expert", "Watch 50 agriculture videos", "🌱", 50),
    Badge("health_guru", "Health Guru", "Watch 50 health and medicine videos", "⚕️", 50),
    Badge("science_enthusiast", "Science Enthusiast", "Watch 50 science videos", "🔬", 50),
    Badge("social_butterfly", "Social Butterfly", "Interact with 100 videos", "🦋", 100),
    Badge("generous_gifter", "Generous Gifter", "Send 10 virtual gifts", "🎁", 10),
    Badge("influencer", "Influencer", "Reach 1000 followers", "⭐", 1000),
)

# evaluation order: requirement ascending, then id
BADGES: tuple[Badge, ...] = tuple(sorted(_BADGES, key=lambda b: (b.point_requirement, b.id)))

REFERRAL_REWARDS = ReferralRewards()

# engagement points per action
WATCH_FULL_SECONDS = 6
WATCH_PARTIAL_SECONDS = 3
WATCH_FULL_POINTS = 10
WATCH_PARTIAL_POINTS = 5
INTERACTION_POINTS: dict[str, int] = {
    "like": 2,
    "comment": 5,
    "share": 10,
    "voice_comment": 10,
}

# creator earnings in USD per engagement unit
EARNINGS_PER_VIEW = Decimal("0.001")
EARNINGS_PER_LIKE = Decimal("0.01")
EARNINGS_PER_SHARE = Decimal("0.05")
