import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

import structlog

import catalog
from catalog.data import (
    INTERACTION_POINTS,
    REFERRAL_REWARDS,
    WATCH_FULL_POINTS,
    WATCH_FULL_SECONDS,
    WATCH_PARTIAL_POINTS,
    WATCH_PARTIAL_SECONDS,
)
from progress import ProgressEngine
from wallet import AccountAlreadyExistsError, TransferKind, WalletLedger
from wallet.money import apply_rate, split_amount, to_minor_units, to_rate, validate_amount

from .config import Settings, settings as default_settings
from .models import (
    ChallengeCompletion,
    CoinConversion,
    CoinPurchaseReceipt,
    Dashboard,
    GiftReceipt,
    InteractionKind,
    PayoutResponse,
    PointsResponse,
    ReferralCode,
    ReferralResponse,
    ReferralStats,
    SubscriptionRecord,
    WalletBalance,
    WithdrawalResponse,
    WithdrawalStatus,
)
from .sink import InMemorySink, PersistenceSink

log = structlog.get_logger(__name__)


class HubError(Exception):
    pass


class UnknownCatalogItemError(HubError):
    pass


class SelfReferralError(HubError):
    pass


class DuplicateReferralError(HubError):
    pass


class UnknownReferralCodeError(HubError):
    pass


class MonetizationHub:
    """
    Request-facing orchestration over the coin ledger, the cash ledger (cents)
    and the progress engine.

    Ledger and progress failures propagate to the caller. Persistence writes
    are best-effort: a failing sink is logged and otherwise ignored, and the
    ledger mutation that preceded it stands.
    """

    def __init__(
        self,
        coins: Optional[WalletLedger] = None,
        cash: Optional[WalletLedger] = None,
        progress: Optional[ProgressEngine] = None,
        sink: Optional[PersistenceSink] = None,
        config: Optional[Settings] = None,
    ):
        self.settings = config or default_settings
        self.coins = coins or WalletLedger(currency="COIN")
        self.cash = cash or WalletLedger(currency=self.settings.cash_currency)
        self.progress = progress or ProgressEngine()
        self.sink = sink or InMemorySink()
        self._subscriptions: dict[str, SubscriptionRecord] = {}
        # new_user_id -> referrer_id; a user is referred at most once
        self._referred_by: dict[str, str] = {}
        self._referral_codes: dict[str, ReferralCode] = {}
        self._codes_by_user: dict[str, str] = {}
        self._referrals_lock = threading.Lock()

    # -- wallet ---------------------------------------------------------

    def register_user(self, user_id: str) -> WalletBalance:
        for ledger in (self.coins, self.cash):
            try:
                ledger.create_account(user_id)
            except AccountAlreadyExistsError:
                log.info("wallet_exists", user_id=user_id, currency=ledger.currency)
        self._record("wallets", {"user_id": user_id, "currency": self.cash.currency})
        return self.get_wallet(user_id)

    def get_wallet(self, user_id: str) -> WalletBalance:
        return WalletBalance(
            user_id=user_id,
            coins=self.coins.balance_of(user_id),
            cash=self.cash.balance_of(user_id),
            currency=self.cash.currency,
        )

    def purchase_coins(self, user_id: str, package_id: str, payment_method: str = "card") -> CoinPurchaseReceipt:
        package = catalog.get_coin_package(package_id)
        if package is None:
            raise UnknownCatalogItemError(f"Coin package {package_id} not found")
        coins = catalog.total_coins(package_id)
        charged = catalog.discounted_price_minor(package_id)
        balance = self.coins.credit(user_id, coins, source=f"coin_purchase:{package_id}")
        self._record("coin_purchases", {
            "user_id": user_id,
            "package_id": package_id,
            "payment_method": payment_method,
            "coins": coins,
            "charged_amount": charged,
            "currency": package.currency,
        })
        return CoinPurchaseReceipt(
            user_id=user_id,
            package_id=package_id,
            payment_method=payment_method,
            coins_credited=coins,
            charged_amount=charged,
            currency=package.currency,
            balance=balance,
        )

    def add_bonus_coins(self, user_id: str, coins: int, reason: str = "bonus") -> int:
        balance = self.coins.credit(user_id, coins, source=f"bonus:{reason}")
        self._record("bonuses", {"user_id": user_id, "coins": coins, "reason": reason})
        return balance

    def convert_coins(self, user_id: str, coins: int) -> CoinConversion:
        """
        Cash out coins at ``coin_cash_rate`` cents per coin.

        The coin debit happens first and raises on a short balance, so a
        rejected conversion leaves both ledgers untouched.
        """
        coins = validate_amount(coins)
        cash_amount = apply_rate(coins, self.settings.coin_cash_rate)
        coin_balance = self.coins.debit(user_id, coins, source="coin_conversion")
        cash_balance = self.cash.credit(user_id, cash_amount, source="coin_conversion")
        self._record("coin_conversions", {
            "user_id": user_id,
            "coins": coins,
            "cash_amount": cash_amount,
            "currency": self.cash.currency,
        })
        return CoinConversion(
            user_id=user_id, coins=coins, cash_amount=cash_amount,
            currency=self.cash.currency, coin_balance=coin_balance, cash_balance=cash_balance,
        )

    def reward_ad_view(self, user_id: str) -> int:
        reward = self.settings.rewarded_ad_coins
        self.coins.credit(user_id, reward, source="rewarded_ad")
        self._record("ad_rewards", {"user_id": user_id, "coins": reward})
        return reward

    def send_gift(self, sender_id: str, receiver_id: str, gift_id: str, quantity: int = 1) -> GiftReceipt:
        cost = catalog.gift_cost(gift_id, quantity)
        if cost is None:
            raise UnknownCatalogItemError(f"Gift {gift_id} not found")
        transfer = self.coins.transfer_with_cut(
            sender_id, receiver_id, cost, self.settings.gift_cut_rate, kind=TransferKind.GIFT,
        )
        self._record("gifts", {
            "transfer_id": str(transfer.id),
            "sender_id": sender_id,
            "receiver_id": receiver_id,
            "gift_id": gift_id,
            "quantity": quantity,
            "amount": transfer.gross_amount,
            "receiver_amount": transfer.net_amount,
        })
        return GiftReceipt(
            transfer=transfer,
            gift_id=gift_id,
            quantity=quantity,
            sender_balance=self.coins.balance_of(sender_id),
            receiver_balance=self.coins.balance_of(receiver_id),
        )

    def record_sponsored_content(self, creator_id: str, brand_id: str, amount: int) -> PayoutResponse:
        net, platform = split_amount(amount, self.settings.sponsorship_cut_rate)
        balance = self.cash.credit(creator_id, net, source=f"sponsored:{brand_id}")
        self._record("sponsored_content", {
            "creator_id": creator_id,
            "brand_id": brand_id,
            "amount": amount,
            "creator_earnings": net,
        })
        return PayoutResponse(
            user_id=creator_id, gross_amount=amount, net_amount=net,
            platform_amount=platform, balance=balance,
        )

    def record_creator_earnings(self, creator_id: str, views: int, likes: int, shares: int) -> PayoutResponse:
        multiplier = 1
        subscription = self._active_subscription(creator_id)
        if subscription is not None:
            plan = catalog.get_subscription_plan(subscription.plan_id)
            if plan is not None:
                multiplier = plan.earnings_multiplier
        earned = catalog.creator_earnings(views, likes, shares, multiplier)
        balance = self.cash.credit(creator_id, earned, source="creator_earnings")
        self._record("creator_earnings", {
            "creator_id": creator_id, "views": views, "likes": likes,
            "shares": shares, "amount": earned,
        })
        return PayoutResponse(
            user_id=creator_id, gross_amount=earned, net_amount=earned,
            platform_amount=0, balance=balance,
        )

    def record_referral(self, referrer_id: str, new_user_id: str) -> ReferralResponse:
        if referrer_id == new_user_id:
            raise SelfReferralError(f"User {referrer_id} cannot refer themselves")
        with self._referrals_lock:
            if new_user_id in self._referred_by:
                raise DuplicateReferralError(
                    f"User {new_user_id} was already referred by {self._referred_by[new_user_id]}"
                )
            self._referred_by[new_user_id] = referrer_id

        referrer_bonus = REFERRAL_REWARDS.referrer_coins
        referred_bonus = REFERRAL_REWARDS.referred_coins
        referrer_cash = to_minor_units(REFERRAL_REWARDS.referrer_cash)
        referred_cash = to_minor_units(REFERRAL_REWARDS.referred_cash)
        self.coins.credit(referrer_id, referrer_bonus, source=f"referral:{new_user_id}")
        self.coins.credit(new_user_id, referred_bonus, source=f"referred_by:{referrer_id}")
        self.cash.credit(referrer_id, referrer_cash, source=f"referral:{new_user_id}")
        self.cash.credit(new_user_id, referred_cash, source=f"referred_by:{referrer_id}")
        self._record("referrals", {
            "referrer_id": referrer_id,
            "new_user_id": new_user_id,
            "bonus": referrer_bonus,
            "referred_bonus": referred_bonus,
            "cash_bonus": referrer_cash,
            "referred_cash_bonus": referred_cash,
        })
        return ReferralResponse(
            referrer_id=referrer_id, new_user_id=new_user_id,
            referrer_bonus=referrer_bonus, referred_bonus=referred_bonus,
            referrer_cash=referrer_cash, referred_cash=referred_cash,
        )

    def generate_referral_code(self, user_id: str, commission_rate: Optional[Decimal] = None) -> ReferralCode:
        """Return the user's referral code, issuing one on first call."""
        rate = to_rate(self.settings.referral_commission_rate if commission_rate is None else commission_rate)
        with self._referrals_lock:
            existing = self._codes_by_user.get(user_id)
            if existing is not None:
                return self._referral_codes[existing]
            code = uuid4().hex[:8].upper()
            while code in self._referral_codes:
                code = uuid4().hex[:8].upper()
            referral_code = ReferralCode(
                id=uuid4(), user_id=user_id, code=code, commission_rate=rate,
                created_at=datetime.now(timezone.utc),
            )
            self._referral_codes[code] = referral_code
            self._codes_by_user[user_id] = code
        self._record("referral_codes", referral_code.model_dump(mode="json"))
        return referral_code

    def get_referral_code(self, user_id: str) -> Optional[ReferralCode]:
        code = self._codes_by_user.get(user_id)
        return self._referral_codes.get(code) if code else None

    def use_referral_code(self, code: str, new_user_id: str) -> ReferralResponse:
        referral_code = self._referral_codes.get(code.strip().upper())
        if referral_code is None or not referral_code.is_active:
            raise UnknownReferralCodeError(f"Referral code {code} not found")
        return self.record_referral(referral_code.user_id, new_user_id)

    def referral_stats(self, user_id: str) -> ReferralStats:
        with self._referrals_lock:
            referred = [new for new, referrer in self._referred_by.items() if referrer == user_id]
        coin_prefixes = ("referral:",)
        cash_prefixes = ("referral:", "subscription_commission:")
        return ReferralStats(
            user_id=user_id,
            code=self._codes_by_user.get(user_id),
            total_referrals=len(referred),
            total_coins=sum(
                e.amount for e in self.coins.store.entries_for(user_id) if e.source.startswith(coin_prefixes)
            ),
            total_cash=sum(
                e.amount for e in self.cash.store.entries_for(user_id) if e.source.startswith(cash_prefixes)
            ),
            currency=self.cash.currency,
        )

    def subscribe(self, user_id: str, plan_id: str, referrer_id: Optional[str] = None) -> SubscriptionRecord:
        plan = catalog.get_subscription_plan(plan_id)
        if plan is None:
            tier_price = catalog.subscription_tier_price(plan_id)
            if tier_price is None:
                raise UnknownCatalogItemError(f"Subscription plan {plan_id} not found")
            price, currency = tier_price, "USD"
        else:
            price, currency = plan.price, plan.currency

        price_minor = to_minor_units(price)
        commission = 0
        if referrer_id and referrer_id != user_id:
            referrer_code = self.get_referral_code(referrer_id)
            rate = referrer_code.commission_rate if referrer_code else self.settings.referral_commission_rate
            commission = apply_rate(price_minor, rate)
            self.cash.credit(referrer_id, commission, source=f"subscription_commission:{user_id}")

        now = datetime.now(timezone.utc)
        record = SubscriptionRecord(
            id=uuid4(),
            user_id=user_id,
            plan_id=plan_id,
            price=price_minor,
            currency=currency,
            start_date=now,
            renewal_date=now + timedelta(days=self.settings.subscription_period_days),
            referrer_id=referrer_id,
            referrer_commission=commission,
        )
        self._subscriptions[user_id] = record
        self._record("subscriptions", record.model_dump(mode="json"))
        return record

    def withdraw_to_bank(self, user_id: str, amount: int, bank_details: Optional[dict[str, Any]] = None) -> WithdrawalResponse:
        balance = self.cash.debit(user_id, amount, source="withdrawal")
        withdrawal = WithdrawalResponse(
            id=uuid4(), user_id=user_id, amount=amount,
            status=WithdrawalStatus.PENDING, balance=balance,
        )
        self._record("withdrawals", {
            "id": str(withdrawal.id),
            "user_id": user_id,
            "amount": amount,
            "bank_details": bank_details or {},
            "status": withdrawal.status.value,
        })
        return withdrawal

    # -- engagement -----------------------------------------------------

    def watch_video(self, user_id: str, video_id: str, seconds: float) -> PointsResponse:
        if seconds >= WATCH_FULL_SECONDS:
            points = WATCH_FULL_POINTS
        elif seconds >= WATCH_PARTIAL_SECONDS:
            points = WATCH_PARTIAL_POINTS
        else:
            points = 0
        return self._award_points(user_id, points, "video_watch", {"video_id": video_id, "seconds": seconds})

    def interact_with_video(self, user_id: str, video_id: str, kind: InteractionKind) -> PointsResponse:
        kind = InteractionKind(kind)
        points = INTERACTION_POINTS[kind.value]
        return self._award_points(user_id, points, f"interaction_{kind.value}", {"video_id": video_id})

    def join_challenge(self, user_id: str, challenge_id: str) -> bool:
        joined = self.progress.join_challenge(user_id, challenge_id)
        if joined:
            self._record("challenge_participants", {
                "user_id": user_id, "challenge_id": challenge_id, "completed": False,
            })
        return joined

    def complete_challenge(self, user_id: str, challenge_id: str, reward_points: Optional[int] = None) -> ChallengeCompletion:
        reward = self.progress.complete_challenge(user_id, challenge_id, reward_points)
        if reward > 0:
            self.progress.evaluate_badges(user_id)
            self._record("challenge_completions", {
                "user_id": user_id, "challenge_id": challenge_id, "reward": reward,
            })
        return ChallengeCompletion(
            user_id=user_id, challenge_id=challenge_id, reward=reward,
            progress=self.progress.get_progress(user_id),
        )

    def dashboard(self, user_id: str) -> Dashboard:
        return Dashboard(
            user_id=user_id,
            wallet=self.get_wallet(user_id),
            progress=self.progress.get_progress(user_id),
            leaderboard_rank=self.progress.rank_of(user_id),
        )

    def delete_user(self, user_id: str) -> bool:
        deleted = any([
            self.coins.delete_account(user_id),
            self.cash.delete_account(user_id),
            self.progress.delete_progress(user_id),
        ])
        self._subscriptions.pop(user_id, None)
        with self._referrals_lock:
            code = self._codes_by_user.pop(user_id, None)
            if code is not None:
                self._referral_codes.pop(code, None)
        if deleted:
            self._record("account_deletions", {"user_id": user_id})
        return deleted

    # -- internals ------------------------------------------------------

    def _active_subscription(self, user_id: str) -> Optional[SubscriptionRecord]:
        return self._subscriptions.get(user_id)

    def _award_points(self, user_id: str, points: int, reason: str, details: dict[str, Any]) -> PointsResponse:
        record = self.progress.add_points(user_id, points)
        new_badges = self.progress.evaluate_badges(user_id)
        if points:
            self._record("engagement_points", {"user_id": user_id, "points": points, "reason": reason, **details})
        return PointsResponse(
            user_id=user_id,
            points_earned=points,
            progress=self.progress.get_progress(user_id) or record,
            new_badges=[b.id for b in new_badges],
        )

    def _record(self, collection: str, document: dict[str, Any]) -> None:
        try:
            self.sink.record(collection, document)
        except Exception:
            log.warning("persistence_write_failed", collection=collection, exc_info=True)
