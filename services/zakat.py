"""
Zakat eligibility engine.

Gold is zakatable once a user has held at least the nisab (85 g) continuously
for one lunar year (354 days); the levy is 2.5% of the held weight's value.

The engine keeps one persisted ZakatRecord per user. Its holding_start_date
anchors the current continuous run at or above nisab and is carried over
between recomputes; any dip below nisab in the ledger breaks the run, and the
next crossing re-anchors it.
"""

import logging
import threading
import weakref
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Iterator, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from db_engine import get_engine
from errors import ConflictError, NotFoundError
from models import GoldTransaction, ZakatRecord
from models.numeric import Number, to_decimal, round_money
from repositories import TransactionRepository, ZakatRepository
from services.holdings import compute_holdings, signed_weight

logger = logging.getLogger(__name__)

NISAB_GRAMS = Decimal("85")
REQUIRED_DAYS = 354  # one lunar year
ZAKAT_RATE = Decimal("0.025")

ZERO = Decimal("0")


@dataclass(frozen=True)
class ZakatEvaluation:
    """Zakat state derived from a ledger at a point in time. Not persisted by itself."""
    gold_weight_grams: Decimal
    holding_start_date: datetime
    is_eligible: bool
    next_reminder_date: Optional[datetime]
    days_held: Optional[int]  # None while below nisab

    @property
    def meets_nisab(self) -> bool:
        return self.gold_weight_grams >= NISAB_GRAMS


@dataclass(frozen=True)
class ZakatStatus:
    """Read-only zakat summary shown on the dashboard."""
    is_eligible: bool
    current_weight_grams: Decimal
    threshold_grams: Decimal
    days_held: Optional[int]
    required_days: int

    @classmethod
    def from_evaluation(cls, evaluation: ZakatEvaluation) -> "ZakatStatus":
        return cls(
            is_eligible=evaluation.is_eligible,
            current_weight_grams=evaluation.gold_weight_grams,
            threshold_grams=NISAB_GRAMS,
            days_held=evaluation.days_held,
            required_days=REQUIRED_DAYS,
        )


def days_between(start: datetime, end: datetime) -> int:
    """Whole days elapsed from start to end (floored)."""
    return (end - start) // timedelta(days=1)


def find_holding_start(
    transactions: Iterable[GoldTransaction],
    nisab: Decimal = NISAB_GRAMS
) -> Optional[datetime]:
    """
    Replay the ledger oldest first and return the date of the transaction at
    which the current run at or above nisab began.

    Returns None when the replay ends below nisab.
    """
    ordered = sorted(transactions, key=lambda tx: (tx.transaction_date, tx.id or 0))
    running = ZERO
    start = None
    for tx in ordered:
        running += signed_weight(tx)
        if running >= nisab:
            if start is None:
                start = tx.transaction_date
        else:
            start = None
    return start


def calculate_zakat_due(gold_weight_grams: Number, price_per_gram: Number) -> Decimal:
    """2.5% of the gold's value, in cents (100 g at $60/g -> $150.00)."""
    return round_money(to_decimal(gold_weight_grams) * to_decimal(price_per_gram) * ZAKAT_RATE)


def evaluate_zakat(
    transactions: List[GoldTransaction],
    prior: Optional[ZakatRecord],
    now: datetime
) -> ZakatEvaluation:
    """
    Derive the zakat state of a ledger, resuming from the prior persisted record.

    Args:
        transactions: The user's full ledger, any order
        prior: The user's current ZakatRecord, if any
        now: Evaluation time

    Returns:
        ZakatEvaluation ready to be persisted or displayed
    """
    holdings = compute_holdings(transactions)

    if holdings < NISAB_GRAMS:
        # Start date is meaningless below nisab; keep whatever was stored
        start = prior.holding_start_date if prior is not None else now
        return ZakatEvaluation(
            gold_weight_grams=holdings,
            holding_start_date=start,
            is_eligible=False,
            next_reminder_date=None,
            days_held=None,
        )

    run_start = find_holding_start(transactions)
    prior_above = prior is not None and prior.gold_weight_grams >= NISAB_GRAMS
    if prior_above and (run_start is None or run_start <= prior.holding_start_date):
        start = prior.holding_start_date
    else:
        start = run_start or now

    days_held = days_between(start, now)
    is_eligible = days_held >= REQUIRED_DAYS
    next_reminder = None
    if is_eligible:
        next_reminder = start + timedelta(days=2 * REQUIRED_DAYS)
        # Keep a reminder that was already advanced past the default for this run
        if (prior is not None and prior.is_eligible
                and prior.holding_start_date == start
                and prior.next_reminder_date is not None
                and prior.next_reminder_date > next_reminder):
            next_reminder = prior.next_reminder_date

    return ZakatEvaluation(
        gold_weight_grams=holdings,
        holding_start_date=start,
        is_eligible=is_eligible,
        next_reminder_date=next_reminder,
        days_held=days_held,
    )


# Entries vanish once no thread holds or waits on the user's lock.
_user_locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()
_user_locks_guard = threading.Lock()


@contextmanager
def _user_lock(user_id: int) -> Iterator[None]:
    """Serialize zakat recomputes of the same user within this process."""
    with _user_locks_guard:
        lock = _user_locks.get(user_id)
        if lock is None:
            lock = threading.Lock()
            _user_locks[user_id] = lock
    with lock:
        yield


class ZakatService:
    """
    Zakat status recompute, queries and reminder scheduling.
    Every operation accepts an optional `now` so callers can evaluate at a fixed instant.
    """

    @staticmethod
    def update_zakat_status(user_id: int, now: Optional[datetime] = None) -> ZakatRecord:
        """
        Recompute a user's zakat state from the full ledger and upsert the record.

        Returns:
            The persisted ZakatRecord

        Raises:
            ConflictError: another writer inserted the user's record concurrently
        """
        now = now or datetime.now()

        with _user_lock(user_id):
            with Session(get_engine()) as session:
                try:
                    prior = ZakatRepository.get_by_user(user_id, session=session)
                    prior_start = prior.holding_start_date if prior is not None else None
                    transactions = TransactionRepository.get_by_user(
                        user_id, ascending=True, session=session
                    )
                    evaluation = evaluate_zakat(transactions, prior, now)

                    record = ZakatRecord(
                        user_id=user_id,
                        gold_weight_grams=evaluation.gold_weight_grams,
                        holding_start_date=evaluation.holding_start_date,
                        is_eligible=evaluation.is_eligible,
                        next_reminder_date=evaluation.next_reminder_date,
                        created_at=now,
                        updated_at=now,
                    )
                    saved = ZakatRepository.save(record, session=session)
                except IntegrityError as e:
                    session.rollback()
                    raise ConflictError(f"Concurrent zakat update for user {user_id}") from e

        if evaluation.meets_nisab and prior_start != saved.holding_start_date:
            logger.info(f"User {user_id} holding period anchored at {saved.holding_start_date:%Y-%m-%d}")
        logger.info(
            f"Zakat status for user {user_id}: {saved.gold_weight_grams}g, "
            f"eligible={saved.is_eligible}, days_held={evaluation.days_held}"
        )
        return saved

    @staticmethod
    def get_zakat_status(user_id: int) -> Optional[ZakatRecord]:
        """Current zakat record of a user, or None if never computed."""
        return ZakatRepository.get_by_user(user_id)

    @staticmethod
    def calculate_zakat_amount(user_id: int, price_per_gram: Number) -> Decimal:
        """
        Zakat due at the given gold price.

        Returns:
            0.00 without a record or when not eligible, otherwise 2.5% of the held value
        """
        record = ZakatRepository.get_by_user(user_id)
        if record is None or not record.is_eligible:
            return round_money(ZERO)
        return calculate_zakat_due(record.gold_weight_grams, price_per_gram)

    @staticmethod
    def refresh_zakat_statuses(now: Optional[datetime] = None) -> List[ZakatRecord]:
        """
        Recompute every record at or above nisab.

        A held balance matures with time alone, so records written at the last
        transaction go stale without this pass.
        """
        now = now or datetime.now()
        user_ids = ZakatRepository.get_user_ids_at_or_above(NISAB_GRAMS)
        records = [ZakatService.update_zakat_status(user_id, now=now) for user_id in user_ids]
        logger.info(f"Refreshed zakat status for {len(records)} users")
        return records

    @staticmethod
    def get_users_for_zakat_reminder(now: Optional[datetime] = None) -> List[ZakatRecord]:
        """Eligible records whose next reminder is due at or before now."""
        return ZakatRepository.get_due(now or datetime.now())

    @staticmethod
    def update_next_reminder_date(
        record_id: int,
        next_date: datetime,
        now: Optional[datetime] = None
    ) -> ZakatRecord:
        """
        Move a record's next reminder date.

        Raises:
            NotFoundError: no zakat record has that ID
        """
        record = ZakatRepository.update_reminder_date(record_id, next_date, now=now)
        if record is None:
            raise NotFoundError(f"Zakat record {record_id} not found")
        logger.info(f"Next zakat reminder for user {record.user_id} set to {next_date:%Y-%m-%d}")
        return record
