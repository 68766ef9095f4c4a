"""
Ledger service for recording gold transactions.
Every write is followed by a zakat recompute for the owner, so the stored
zakat record always reflects the latest ledger.
"""

import logging
from datetime import datetime
from typing import List, Optional

from errors import NotFoundError
from models import GoldTransaction, TransactionType
from models.numeric import Number
from repositories import TransactionRepository, UserRepository
from services.zakat import ZakatService

logger = logging.getLogger(__name__)


class LedgerService:
    """Owner-scoped transaction writes and reads."""

    @staticmethod
    def record_transaction(
        user_id: int,
        transaction_type: TransactionType,
        weight_grams: Number,
        price_per_gram: Number,
        transaction_date: datetime,
        description: Optional[str] = None
    ) -> GoldTransaction:
        """
        Record a buy or sell and refresh the owner's zakat status.

        Raises:
            NotFoundError: the user does not exist
            ValidationError: weight or price is not positive
        """
        if UserRepository.get_by_id(user_id) is None:
            raise NotFoundError(f"User with id {user_id} not found")

        transaction = TransactionRepository.add(
            user_id=user_id,
            transaction_type=transaction_type,
            weight_grams=weight_grams,
            price_per_gram=price_per_gram,
            transaction_date=transaction_date,
            description=description
        )
        logger.info(
            f"Recorded {transaction.transaction_type.value} of {transaction.weight_grams}g "
            f"at ${transaction.price_per_gram}/g for user {user_id}"
        )
        ZakatService.update_zakat_status(user_id)
        return transaction

    @staticmethod
    def update_transaction(transaction_id: int, user_id: int, **changes) -> GoldTransaction:
        """
        Update fields of a user's transaction (see TransactionRepository.update).

        Raises:
            NotFoundError: no such transaction for this user
        """
        transaction = TransactionRepository.update(transaction_id, user_id, **changes)
        if transaction is None:
            raise NotFoundError(f"Transaction {transaction_id} not found for user {user_id}")
        ZakatService.update_zakat_status(user_id)
        return transaction

    @staticmethod
    def delete_transaction(transaction_id: int, user_id: int) -> bool:
        """Delete a user's transaction. Returns False if nothing matched."""
        deleted = TransactionRepository.delete(transaction_id, user_id)
        if deleted:
            logger.info(f"Deleted transaction {transaction_id} for user {user_id}")
            ZakatService.update_zakat_status(user_id)
        return deleted

    @staticmethod
    def get_transactions(user_id: int) -> List[GoldTransaction]:
        """A user's transactions, newest first."""
        return TransactionRepository.get_by_user(user_id)

    @staticmethod
    def get_transaction(transaction_id: int, user_id: int) -> Optional[GoldTransaction]:
        """A single transaction, or None if missing or not the user's."""
        return TransactionRepository.get_by_id(transaction_id, user_id)
