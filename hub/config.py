import os
from pydantic import BaseModel


class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "reels-rewards-ledger")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")

    cash_currency: str = os.getenv("CASH_CURRENCY", "USD")
    # platform share of a gift / sponsorship, as a fraction of the gross
    gift_cut_rate: str = os.getenv("GIFT_CUT_RATE", "0.30")
    sponsorship_cut_rate: str = os.getenv("SPONSORSHIP_CUT_RATE", "0.20")
    referral_commission_rate: str = os.getenv("REFERRAL_COMMISSION_RATE", "0.10")
    # cents paid out per converted coin
    coin_cash_rate: str = os.getenv("COIN_CASH_RATE", "0.5")
    rewarded_ad_coins: int = int(os.getenv("REWARDED_AD_COINS", "50"))
    subscription_period_days: int = int(os.getenv("SUBSCRIPTION_PERIOD_DAYS", "30"))


settings = Settings()
