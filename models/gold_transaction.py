"""
GoldTransaction model - a buy/sell of physical gold by weight.
"""

from enum import Enum
from typing import Optional
from datetime import datetime
from decimal import Decimal
from sqlmodel import SQLModel, Field


class TransactionType(str, Enum):
    BUY = "buy"
    SELL = "sell"


class GoldTransaction(SQLModel, table=True):
    """Represents a buy/sell of gold. total_price is always weight x price, in cents."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    transaction_type: TransactionType
    weight_grams: Decimal = Field(max_digits=10, decimal_places=3)
    price_per_gram: Decimal = Field(max_digits=10, decimal_places=2)
    total_price: Decimal = Field(max_digits=12, decimal_places=2)
    transaction_date: datetime = Field(index=True)
    description: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
