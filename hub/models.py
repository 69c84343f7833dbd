from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict

from progress import ProgressRecord
from wallet import Transfer


class InteractionKind(str, Enum):
    LIKE = "like"
    COMMENT = "comment"
    SHARE = "share"
    VOICE_COMMENT = "voice_comment"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class WithdrawalStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class RegisterUserRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


class PurchaseCoinsRequest(BaseModel):
    user_id: str
    package_id: str
    payment_method: str = "card"

    model_config = ConfigDict(json_schema_extra={
        "example": {"user_id": "user_42", "package_id": "popular", "payment_method": "card"}
    })


class AddBonusRequest(BaseModel):
    user_id: str
    coins: int = Field(..., ge=0)
    reason: str = "bonus"


class SendGiftRequest(BaseModel):
    from_user_id: str
    to_user_id: str
    gift_id: str
    quantity: int = Field(default=1, ge=1)

    model_config = ConfigDict(json_schema_extra={
        "example": {"from_user_id": "user_42", "to_user_id": "creator_7", "gift_id": "rose", "quantity": 3}
    })


class SponsoredContentRequest(BaseModel):
    creator_id: str
    brand_id: str
    amount: int = Field(..., ge=0, description="Gross sponsorship in cents")


class ReferralRequest(BaseModel):
    referrer_id: str
    new_user_id: str


class SubscribeRequest(BaseModel):
    user_id: str
    plan_id: str
    referrer_id: Optional[str] = None


class WithdrawRequest(BaseModel):
    user_id: str
    amount: int = Field(..., ge=0, description="Amount in cents")
    bank_details: dict[str, Any] = Field(default_factory=dict)


class WatchVideoRequest(BaseModel):
    user_id: str
    video_id: str
    seconds: float = Field(..., ge=0)


class InteractionRequest(BaseModel):
    user_id: str
    video_id: str
    kind: InteractionKind


class CreateChallengeRequest(BaseModel):
    title: str
    description: str = ""
    reward: int = Field(..., ge=0)
    duration_days: int = Field(default=7, ge=1)


class ChallengeActionRequest(BaseModel):
    user_id: str
    reward_points: Optional[int] = Field(default=None, ge=0)


class WalletBalance(BaseModel):
    user_id: str
    coins: int
    cash: int
    currency: str


class CoinPurchaseReceipt(BaseModel):
    user_id: str
    package_id: str
    payment_method: str
    coins_credited: int
    charged_amount: int
    currency: str
    balance: int


class GiftReceipt(BaseModel):
    transfer: Transfer
    gift_id: str
    quantity: int
    sender_balance: int
    receiver_balance: int


class PayoutResponse(BaseModel):
    user_id: str
    gross_amount: int
    net_amount: int
    platform_amount: int
    balance: int


class ReferralResponse(BaseModel):
    referrer_id: str
    new_user_id: str
    referrer_bonus: int
    referred_bonus: int
    referrer_cash: int = 0
    referred_cash: int = 0


class SubscriptionRecord(BaseModel):
    id: UUID
    user_id: str
    plan_id: str
    price: int
    currency: str
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    start_date: datetime
    renewal_date: datetime
    referrer_id: Optional[str] = None
    referrer_commission: int = 0


class WithdrawalResponse(BaseModel):
    id: UUID
    user_id: str
    amount: int
    status: WithdrawalStatus
    balance: int


class PointsResponse(BaseModel):
    user_id: str
    points_earned: int
    progress: ProgressRecord
    new_badges: list[str] = Field(default_factory=list)


class ChallengeCompletion(BaseModel):
    user_id: str
    challenge_id: str
    reward: int
    progress: Optional[ProgressRecord] = None


class Dashboard(BaseModel):
    user_id: str
    wallet: WalletBalance
    progress: Optional[ProgressRecord] = None
    leaderboard_rank: Optional[int] = None


class CreatorEarningsRequest(BaseModel):
    creator_id: str
    views: int = Field(default=0, ge=0)
    likes: int = Field(default=0, ge=0)
    shares: int = Field(default=0, ge=0)


class ConvertCoinsRequest(BaseModel):
    user_id: str
    coins: int = Field(..., ge=0)

    model_config = ConfigDict(json_schema_extra={
        "example": {"user_id": "creator_7", "coins": 1000}
    })


class CoinConversion(BaseModel):
    user_id: str
    coins: int
    cash_amount: int = Field(..., description="Cash credited, in cents")
    currency: str
    coin_balance: int
    cash_balance: int


class GenerateReferralCodeRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    commission_rate: Optional[Decimal] = Field(default=None, ge=0, le=1)


class UseReferralCodeRequest(BaseModel):
    code: str = Field(..., min_length=1)
    new_user_id: str = Field(..., min_length=1)


class ReferralCode(BaseModel):
    id: UUID
    user_id: str
    code: str
    commission_rate: Decimal
    is_active: bool = True
    created_at: datetime


class ReferralStats(BaseModel):
    user_id: str
    code: Optional[str] = None
    total_referrals: int
    total_coins: int
    total_cash: int = Field(..., description="Signup bonuses plus subscription commission, in cents")
    currency: str
