"""
Database models for GoldKeeper.
All SQLModel table definitions are centralized here.
"""

from models.user import User
from models.gold_transaction import GoldTransaction, TransactionType
from models.gold_goal import GoldGoal
from models.zakat_record import ZakatRecord

__all__ = [
    'User',
    'GoldTransaction',
    'TransactionType',
    'GoldGoal',
    'ZakatRecord',
]
