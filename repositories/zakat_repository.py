"""
Zakat Repository - data access layer for ZakatRecord model.
Optimized with optional session parameter for transaction reuse.
"""

from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from sqlmodel import Session, select

from db_engine import get_engine
from models import ZakatRecord


class ZakatRepository:
    """Repository for ZakatRecord operations. One record per user."""

    @staticmethod
    def get_by_user(user_id: int, session: Optional[Session] = None) -> Optional[ZakatRecord]:
        """Retrieve the zakat record of a user, if one has been computed."""
        def _get_by_user(sess: Session) -> Optional[ZakatRecord]:
            statement = select(ZakatRecord).where(ZakatRecord.user_id == user_id)
            return sess.exec(statement).first()

        if session is not None:
            return _get_by_user(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_user(session)

    @staticmethod
    def save(record: ZakatRecord, session: Optional[Session] = None) -> ZakatRecord:
        """
        Save or update the zakat record of record.user_id.
        Uses upsert logic: if a row exists for the user, update it; otherwise insert.
        """
        def _save(sess: Session) -> ZakatRecord:
            existing = ZakatRepository.get_by_user(record.user_id, session=sess)

            if existing:
                existing.gold_weight_grams = record.gold_weight_grams
                existing.holding_start_date = record.holding_start_date
                existing.is_eligible = record.is_eligible
                existing.next_reminder_date = record.next_reminder_date
                existing.updated_at = record.updated_at
                sess.add(existing)
                sess.commit()
                sess.refresh(existing)
                return existing
            else:
                sess.add(record)
                sess.commit()
                sess.refresh(record)
                return record

        if session is not None:
            return _save(session)
        else:
            with Session(get_engine()) as session:
                return _save(session)

    @staticmethod
    def update_reminder_date(
        record_id: int,
        next_reminder_date: datetime,
        now: Optional[datetime] = None
    ) -> Optional[ZakatRecord]:
        """
        Set next_reminder_date on a record.

        Returns:
            Updated ZakatRecord or None if no record has that ID
        """
        with Session(get_engine()) as session:
            record = session.get(ZakatRecord, record_id)
            if record is None:
                return None
            record.next_reminder_date = next_reminder_date
            record.updated_at = now or datetime.now()
            session.add(record)
            session.commit()
            session.refresh(record)
            return record

    @staticmethod
    def get_due(now: datetime) -> List[ZakatRecord]:
        """Eligible records whose reminder date is at or before now, oldest first."""
        with Session(get_engine()) as session:
            statement = select(ZakatRecord).where(
                ZakatRecord.is_eligible == True,  # noqa: E712
                ZakatRecord.next_reminder_date.is_not(None),
                ZakatRecord.next_reminder_date <= now
            ).order_by(ZakatRecord.next_reminder_date.asc())
            return list(session.exec(statement).all())

    @staticmethod
    def get_user_ids_at_or_above(threshold_grams: Decimal) -> List[int]:
        """User IDs whose recorded holdings are at or above the given weight."""
        with Session(get_engine()) as session:
            statement = select(ZakatRecord.user_id).where(
                ZakatRecord.gold_weight_grams >= threshold_grams
            ).order_by(ZakatRecord.user_id.asc())
            return list(session.exec(statement).all())
