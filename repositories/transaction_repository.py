"""
Transaction Repository - data access layer for GoldTransaction model.
Optimized with optional session parameter for transaction reuse.
"""

from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from sqlmodel import Session, select

from db_engine import get_engine
from errors import ValidationError
from models import GoldTransaction, TransactionType
from models.numeric import Number, to_decimal, round_money, round_weight, calculate_total_price

# Distinguishes "leave description alone" from "set description to None"
_UNSET = object()


def _positive(name: str, value: Number) -> Decimal:
    amount = to_decimal(value)
    if amount <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")
    return amount


class TransactionRepository:
    """Repository for GoldTransaction CRUD operations."""

    @staticmethod
    def add(
        user_id: int,
        transaction_type: TransactionType,
        weight_grams: Number,
        price_per_gram: Number,
        transaction_date: datetime,
        description: Optional[str] = None,
        session: Optional[Session] = None
    ) -> GoldTransaction:
        """
        Add a new transaction to the database.

        Args:
            user_id: Owner of the transaction
            transaction_type: buy or sell
            weight_grams: Weight in grams (stored with 3 decimal places)
            price_per_gram: Price per gram (stored with 2 decimal places)
            transaction_date: When the gold changed hands
            description: Optional free-text note
            session: Optional existing session for transaction reuse

        Returns:
            Created GoldTransaction with total_price derived
        """
        weight = round_weight(_positive("weight_grams", weight_grams))
        price = round_money(_positive("price_per_gram", price_per_gram))

        def _create_transaction(sess: Session) -> GoldTransaction:
            transaction = GoldTransaction(
                user_id=user_id,
                transaction_type=TransactionType(transaction_type),
                weight_grams=weight,
                price_per_gram=price,
                total_price=calculate_total_price(weight, price),
                transaction_date=transaction_date,
                description=description
            )
            sess.add(transaction)
            sess.commit()
            sess.refresh(transaction)
            return transaction

        if session is not None:
            return _create_transaction(session)
        else:
            with Session(get_engine()) as session:
                return _create_transaction(session)

    @staticmethod
    def get_by_user(
        user_id: int,
        ascending: bool = False,
        session: Optional[Session] = None
    ) -> List[GoldTransaction]:
        """
        Retrieve all transactions for a user ordered by transaction date.

        Args:
            user_id: Owner to look up
            ascending: Oldest first when True, newest first otherwise
            session: Optional existing session for transaction reuse

        Returns:
            List of GoldTransaction objects
        """
        def _get_by_user(sess: Session) -> List[GoldTransaction]:
            if ascending:
                order = (GoldTransaction.transaction_date.asc(), GoldTransaction.id.asc())
            else:
                order = (GoldTransaction.transaction_date.desc(), GoldTransaction.id.desc())
            statement = select(GoldTransaction).where(
                GoldTransaction.user_id == user_id
            ).order_by(*order)
            return list(sess.exec(statement).all())

        if session is not None:
            return _get_by_user(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_user(session)

    @staticmethod
    def get_by_id(
        transaction_id: int,
        user_id: int,
        session: Optional[Session] = None
    ) -> Optional[GoldTransaction]:
        """Retrieve a transaction by ID, or None if missing or owned by someone else."""
        def _get_by_id(sess: Session) -> Optional[GoldTransaction]:
            transaction = sess.get(GoldTransaction, transaction_id)
            if transaction is None or transaction.user_id != user_id:
                return None
            return transaction

        if session is not None:
            return _get_by_id(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_id(session)

    @staticmethod
    def update(
        transaction_id: int,
        user_id: int,
        transaction_type: Optional[TransactionType] = None,
        weight_grams: Optional[Number] = None,
        price_per_gram: Optional[Number] = None,
        transaction_date: Optional[datetime] = None,
        description=_UNSET,
        session: Optional[Session] = None
    ) -> Optional[GoldTransaction]:
        """
        Update an existing transaction.
        Only updates fields that are provided; total_price is re-derived
        whenever weight or price changes.

        Returns:
            Updated GoldTransaction or None if not found
        """
        weight = round_weight(_positive("weight_grams", weight_grams)) if weight_grams is not None else None
        price = round_money(_positive("price_per_gram", price_per_gram)) if price_per_gram is not None else None

        def _update(sess: Session) -> Optional[GoldTransaction]:
            transaction = sess.get(GoldTransaction, transaction_id)
            if transaction is None or transaction.user_id != user_id:
                return None
            if transaction_type is not None:
                transaction.transaction_type = TransactionType(transaction_type)
            if weight is not None:
                transaction.weight_grams = weight
            if price is not None:
                transaction.price_per_gram = price
            if weight is not None or price is not None:
                transaction.total_price = calculate_total_price(
                    transaction.weight_grams, transaction.price_per_gram
                )
            if transaction_date is not None:
                transaction.transaction_date = transaction_date
            if description is not _UNSET:
                transaction.description = description
            transaction.updated_at = datetime.now()
            sess.add(transaction)
            sess.commit()
            sess.refresh(transaction)
            return transaction

        if session is not None:
            return _update(session)
        else:
            with Session(get_engine()) as session:
                return _update(session)

    @staticmethod
    def delete(transaction_id: int, user_id: int, session: Optional[Session] = None) -> bool:
        """
        Delete a transaction owned by user_id.

        Returns:
            True if a row was deleted, False if not found or not the user's
        """
        def _delete(sess: Session) -> bool:
            try:
                transaction = sess.get(GoldTransaction, transaction_id)
                if transaction and transaction.user_id == user_id:
                    sess.delete(transaction)
                    sess.commit()
                    return True
                return False
            except Exception:
                sess.rollback()
                raise

        if session is not None:
            return _delete(session)
        else:
            with Session(get_engine()) as session:
                return _delete(session)
