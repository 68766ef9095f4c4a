"""
GoldGoal model - a target weight to accumulate by a deadline.
"""

from typing import Optional
from datetime import datetime
from decimal import Decimal
from sqlmodel import SQLModel, Field


class GoldGoal(SQLModel, table=True):
    """A savings goal. Progress is derived from holdings on read, never stored."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    target_weight_grams: Decimal = Field(max_digits=10, decimal_places=3)
    deadline: datetime = Field(index=True)
    title: str
    description: Optional[str] = Field(default=None)
    is_completed: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
