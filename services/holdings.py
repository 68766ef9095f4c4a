"""
Holdings calculator.
Reduces a gold transaction ledger to a net weight in grams.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from sqlmodel import Session

from models import GoldTransaction, TransactionType
from repositories import TransactionRepository

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def signed_weight(tx: GoldTransaction) -> Decimal:
    """Weight contributed by a transaction: positive for buys, negative for sells."""
    if tx.transaction_type == TransactionType.SELL:
        return -tx.weight_grams
    return tx.weight_grams


def compute_holdings(transactions: Iterable[GoldTransaction]) -> Decimal:
    """
    Net holdings = sum of buys - sum of sells, floored at zero.
    Order of the ledger does not matter.
    """
    total_bought = ZERO
    total_sold = ZERO
    for tx in transactions:
        if tx.transaction_type == TransactionType.BUY:
            total_bought += tx.weight_grams
        elif tx.transaction_type == TransactionType.SELL:
            total_sold += tx.weight_grams
    return max(ZERO, total_bought - total_sold)


class HoldingsService:
    """Holdings query over the stored ledger."""

    @staticmethod
    def get_user_holdings(user_id: int, session: Optional[Session] = None) -> Decimal:
        """Net gold weight held by a user, in grams."""
        transactions = TransactionRepository.get_by_user(user_id, session=session)
        holdings = compute_holdings(transactions)
        logger.debug(f"User {user_id} holds {holdings}g across {len(transactions)} transactions")
        return holdings
