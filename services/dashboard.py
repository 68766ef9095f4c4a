"""
Dashboard aggregator.
Composes holdings, goal progress, zakat status and the gold price into one
read-only snapshot taken at a single instant.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlmodel import Session

from db_engine import get_engine
from models.numeric import round_money
from repositories import GoalRepository, TransactionRepository, ZakatRepository
from services.gold_price import GoldPriceService, get_price_service
from services.goals import GoalProgress, evaluate_goals
from services.zakat import ZakatStatus, evaluate_zakat

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardData:
    """Everything the dashboard shows for one user."""
    total_gold_grams: Decimal
    estimated_total_value: Decimal
    current_gold_price: Decimal
    goals_progress: List[GoalProgress]
    zakat_status: ZakatStatus


class DashboardService:
    """Builds dashboard snapshots. Reads only; the zakat record is never written here."""

    def __init__(self, price_service: Optional[GoldPriceService] = None):
        self.price_service = price_service

    def get_dashboard_data(self, user_id: int, now: Optional[datetime] = None) -> DashboardData:
        """
        Aggregate a user's dashboard.

        Ledger, goals and zakat record are read in one session; the price is
        read once and `now` is fixed for the whole snapshot.

        Raises:
            UpstreamError: the price cache was empty and the feed failed
        """
        now = now or datetime.now()
        price_service = self.price_service or get_price_service()

        with Session(get_engine()) as session:
            transactions = TransactionRepository.get_by_user(user_id, ascending=True, session=session)
            goals = GoalRepository.get_by_user(user_id, session=session)
            prior = ZakatRepository.get_by_user(user_id, session=session)

        quote = price_service.get_price_with_refresh()

        zakat = evaluate_zakat(transactions, prior, now)
        total_grams = zakat.gold_weight_grams

        data = DashboardData(
            total_gold_grams=total_grams,
            estimated_total_value=round_money(total_grams * quote.price_per_gram_usd),
            current_gold_price=quote.price_per_gram_usd,
            goals_progress=evaluate_goals(goals, total_grams),
            zakat_status=ZakatStatus.from_evaluation(zakat),
        )
        logger.debug(f"Dashboard for user {user_id}: {total_grams}g at ${quote.price_per_gram_usd}/g")
        return data
