"""
Repositories package for GoldKeeper.
Provides data access layer for all database operations.
"""

from repositories.user_repository import UserRepository
from repositories.transaction_repository import TransactionRepository
from repositories.goal_repository import GoalRepository
from repositories.zakat_repository import ZakatRepository

__all__ = [
    'UserRepository',
    'TransactionRepository',
    'GoalRepository',
    'ZakatRepository',
]
