"""
ZakatRecord model - persisted snapshot of a user's zakat state.
"""

from typing import Optional
from datetime import datetime
from decimal import Decimal
from sqlmodel import SQLModel, Field


class ZakatRecord(SQLModel, table=True):
    """
    One row per user, updated in place on every recompute.
    holding_start_date anchors the current continuous run at or above nisab.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True, unique=True)
    gold_weight_grams: Decimal = Field(max_digits=10, decimal_places=3)
    holding_start_date: datetime
    is_eligible: bool = Field(default=False)
    next_reminder_date: Optional[datetime] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
