from contextlib import asynccontextmanager
from typing import Literal
from uuid import UUID

import structlog
from fastapi import FastAPI, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware

import catalog
from catalog.data import COIN_PACKAGES, GIFTS, SUBSCRIPTION_PLANS
from progress import Challenge, InvalidPointsError, LeaderboardEntry
from wallet import (
    InsufficientBalanceError, InvalidAmountError, SelfTransferError, Transfer,
    TransferNotFoundError,
)
from wallet.models import LedgerHistoryResponse

from .config import settings
from .logging_setup import configure_logging
from .models import (
    AddBonusRequest, ChallengeActionRequest, ChallengeCompletion, CoinConversion,
    CoinPurchaseReceipt, ConvertCoinsRequest, CreateChallengeRequest, CreatorEarningsRequest,
    Dashboard, GenerateReferralCodeRequest, GiftReceipt, InteractionRequest, PayoutResponse,
    PointsResponse, PurchaseCoinsRequest, ReferralCode, ReferralRequest, ReferralResponse,
    ReferralStats, RegisterUserRequest, SendGiftRequest, SponsoredContentRequest,
    SubscribeRequest, SubscriptionRecord, UseReferralCodeRequest, WalletBalance,
    WatchVideoRequest, WithdrawalResponse, WithdrawRequest,
)
from .service import (
    DuplicateReferralError, MonetizationHub, SelfReferralError, UnknownCatalogItemError,
    UnknownReferralCodeError,
)

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    log.info("startup", env=settings.environment, version=settings.app_version)
    yield
    log.info("shutdown")


app = FastAPI(
    title="Reels Rewards Ledger API",
    description="Wallet ledger, gifting, referrals, subscriptions and engagement rewards",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

hub = MonetizationHub()


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "healthy", "service": settings.app_name, "environment": settings.environment}


@app.post("/users", response_model=WalletBalance, status_code=status.HTTP_201_CREATED, tags=["Users"])
def register_user(request: RegisterUserRequest) -> WalletBalance:
    return hub.register_user(request.user_id)


@app.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Users"])
def delete_user(user_id: str):
    if not hub.delete_user(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User {user_id} not found")


@app.get("/users/{user_id}/dashboard", response_model=Dashboard, tags=["Users"])
def get_dashboard(user_id: str) -> Dashboard:
    return hub.dashboard(user_id)


@app.get("/wallet/balance/{user_id}", response_model=WalletBalance, tags=["Wallet"])
def get_wallet_balance(user_id: str) -> WalletBalance:
    return hub.get_wallet(user_id)


@app.get("/wallet/transactions/{user_id}", response_model=LedgerHistoryResponse, tags=["Wallet"])
def get_transaction_history(
    user_id: str,
    ledger: Literal["coins", "cash"] = "coins",
    limit: int = Query(50, ge=0),
    offset: int = Query(0, ge=0),
) -> LedgerHistoryResponse:
    target = hub.coins if ledger == "coins" else hub.cash
    return target.get_history(user_id, limit, offset)


@app.get("/wallet/transfers/{transfer_id}", response_model=Transfer, tags=["Wallet"])
def get_transfer(transfer_id: UUID) -> Transfer:
    try:
        return hub.coins.get_transfer(transfer_id)
    except TransferNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Transfer {transfer_id} not found")


@app.post("/wallet/purchase-coins", response_model=CoinPurchaseReceipt, tags=["Wallet"])
def purchase_coins(request: PurchaseCoinsRequest) -> CoinPurchaseReceipt:
    try:
        return hub.purchase_coins(request.user_id, request.package_id, request.payment_method)
    except UnknownCatalogItemError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@app.post("/wallet/add-bonus", response_model=WalletBalance, tags=["Wallet"])
def add_bonus_coins(request: AddBonusRequest) -> WalletBalance:
    hub.add_bonus_coins(request.user_id, request.coins, request.reason)
    return hub.get_wallet(request.user_id)


@app.post("/wallet/send-gift", response_model=GiftReceipt, tags=["Wallet"])
def send_gift(request: SendGiftRequest) -> GiftReceipt:
    try:
        return hub.send_gift(request.from_user_id, request.to_user_id, request.gift_id, request.quantity)
    except UnknownCatalogItemError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InsufficientBalanceError as e:
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(e))
    except (SelfTransferError, InvalidAmountError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@app.post("/wallet/withdraw", response_model=WithdrawalResponse, tags=["Wallet"])
def withdraw(request: WithdrawRequest) -> WithdrawalResponse:
    try:
        return hub.withdraw_to_bank(request.user_id, request.amount, request.bank_details)
    except InsufficientBalanceError as e:
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(e))


@app.post("/wallet/convert-coins", response_model=CoinConversion, tags=["Wallet"])
def convert_coins(request: ConvertCoinsRequest) -> CoinConversion:
    try:
        return hub.convert_coins(request.user_id, request.coins)
    except InsufficientBalanceError as e:
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(e))
    except InvalidAmountError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@app.post("/ads/rewarded/{user_id}", response_model=WalletBalance, tags=["Monetization"])
def reward_ad_view(user_id: str) -> WalletBalance:
    hub.reward_ad_view(user_id)
    return hub.get_wallet(user_id)


@app.post("/sponsored-content", response_model=PayoutResponse, tags=["Monetization"])
def record_sponsored_content(request: SponsoredContentRequest) -> PayoutResponse:
    return hub.record_sponsored_content(request.creator_id, request.brand_id, request.amount)


@app.post("/creator-earnings", response_model=PayoutResponse, tags=["Monetization"])
def record_creator_earnings(request: CreatorEarningsRequest) -> PayoutResponse:
    return hub.record_creator_earnings(request.creator_id, request.views, request.likes, request.shares)


@app.post("/referrals", response_model=ReferralResponse, status_code=status.HTTP_201_CREATED, tags=["Monetization"])
def record_referral(request: ReferralRequest) -> ReferralResponse:
    try:
        return hub.record_referral(request.referrer_id, request.new_user_id)
    except SelfReferralError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DuplicateReferralError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@app.post("/referrals/codes", response_model=ReferralCode, status_code=status.HTTP_201_CREATED, tags=["Monetization"])
def generate_referral_code(request: GenerateReferralCodeRequest) -> ReferralCode:
    return hub.generate_referral_code(request.user_id, request.commission_rate)


@app.get("/referrals/codes/{user_id}", response_model=ReferralCode, tags=["Monetization"])
def get_referral_code(user_id: str) -> ReferralCode:
    code = hub.get_referral_code(user_id)
    if code is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No referral code for {user_id}")
    return code


@app.post("/referrals/use-code", response_model=ReferralResponse, status_code=status.HTTP_201_CREATED, tags=["Monetization"])
def use_referral_code(request: UseReferralCodeRequest) -> ReferralResponse:
    try:
        return hub.use_referral_code(request.code, request.new_user_id)
    except UnknownReferralCodeError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except SelfReferralError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DuplicateReferralError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@app.get("/referrals/stats/{user_id}", response_model=ReferralStats, tags=["Monetization"])
def get_referral_stats(user_id: str) -> ReferralStats:
    return hub.referral_stats(user_id)


@app.post("/subscriptions", response_model=SubscriptionRecord, status_code=status.HTTP_201_CREATED, tags=["Monetization"])
def subscribe(request: SubscribeRequest) -> SubscriptionRecord:
    try:
        return hub.subscribe(request.user_id, request.plan_id, request.referrer_id)
    except UnknownCatalogItemError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@app.get("/catalog/coin-packages", tags=["Catalog"])
def list_coin_packages():
    return [
        {**vars(p), "discounted_price": catalog.discounted_price(p.id), "total_coins": catalog.total_coins(p.id)}
        for p in COIN_PACKAGES
    ]


@app.get("/catalog/gifts", tags=["Catalog"])
def list_gifts():
    return list(GIFTS)


@app.get("/catalog/subscription-plans", tags=["Catalog"])
def list_subscription_plans():
    return list(SUBSCRIPTION_PLANS)


@app.get("/catalog/badges", tags=["Catalog"])
def list_badges():
    return list(catalog.badges())


@app.post("/engagement/watch", response_model=PointsResponse, tags=["Engagement"])
def watch_video(request: WatchVideoRequest) -> PointsResponse:
    return hub.watch_video(request.user_id, request.video_id, request.seconds)


@app.post("/engagement/interact", response_model=PointsResponse, tags=["Engagement"])
def interact_with_video(request: InteractionRequest) -> PointsResponse:
    return hub.interact_with_video(request.user_id, request.video_id, request.kind)


@app.post("/challenges", response_model=Challenge, status_code=status.HTTP_201_CREATED, tags=["Engagement"])
def create_challenge(request: CreateChallengeRequest) -> Challenge:
    return hub.progress.create_challenge(request.title, request.description, request.reward, request.duration_days)


@app.post("/challenges/{challenge_id}/join", tags=["Engagement"])
def join_challenge(challenge_id: str, request: ChallengeActionRequest):
    if not hub.join_challenge(request.user_id, challenge_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Challenge {challenge_id} not found")
    return {"user_id": request.user_id, "challenge_id": challenge_id, "joined": True}


@app.post("/challenges/{challenge_id}/complete", response_model=ChallengeCompletion, tags=["Engagement"])
def complete_challenge(challenge_id: str, request: ChallengeActionRequest) -> ChallengeCompletion:
    try:
        return hub.complete_challenge(request.user_id, challenge_id, request.reward_points)
    except InvalidPointsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@app.get("/leaderboard", response_model=list[LeaderboardEntry], tags=["Engagement"])
def get_leaderboard(limit: int = Query(10, ge=0)) -> list[LeaderboardEntry]:
    return list(hub.progress.leaderboard(limit))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
