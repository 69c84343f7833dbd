from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict


class EntryType(str, Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class TransferKind(str, Enum):
    GIFT = "GIFT"
    SPONSORSHIP = "SPONSORSHIP"
    OTHER = "OTHER"


class Account(BaseModel):
    user_id: str
    balance: int = Field(default=0, ge=0)
    currency: str = "COIN"
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LedgerEntry(BaseModel):
    id: UUID
    user_id: str
    entry_type: EntryType
    amount: int
    currency: str = "COIN"
    balance_after: int
    source: str
    transfer_id: Optional[UUID] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, frozen=True)


class Transfer(BaseModel):
    id: UUID
    sender_id: str
    receiver_id: str
    gross_amount: int
    platform_cut_rate: Decimal
    net_amount: int
    platform_amount: int
    kind: TransferKind = TransferKind.OTHER
    currency: str = "COIN"
    created_at: datetime

    model_config = ConfigDict(frozen=True)


class LedgerHistoryResponse(BaseModel):
    user_id: str
    entries: list[LedgerEntry]
    total_count: int
    current_balance: int
