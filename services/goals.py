"""
Goal progress evaluator.
Compares net holdings against each goal's target weight.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlmodel import Session

from db_engine import get_engine
from errors import NotFoundError
from models import GoldGoal
from models.numeric import Number, to_decimal, round_money
from repositories import GoalRepository, TransactionRepository, UserRepository
from services.holdings import compute_holdings

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
ZERO = Decimal("0")


@dataclass(frozen=True)
class GoalProgress:
    """Progress of one goal at read time."""
    id: int
    title: str
    target_weight_grams: Decimal
    progress_percentage: Decimal  # 0-100, 2 decimal places
    deadline: datetime
    is_completed: bool


def progress_percentage(current_holdings: Number, target_weight_grams: Number) -> Decimal:
    """
    Percentage of target reached, clamped to [0, 100].
    A zero or negative target yields 0 rather than dividing by zero.
    """
    target = to_decimal(target_weight_grams)
    if target <= 0:
        return round_money(ZERO)
    holdings = max(ZERO, to_decimal(current_holdings))
    return min(round_money(HUNDRED), round_money(holdings / target * HUNDRED))


def evaluate_goals(goals: Iterable[GoldGoal], current_holdings: Number) -> List[GoalProgress]:
    """Progress for each goal, in input order. Never changes is_completed."""
    return [
        GoalProgress(
            id=goal.id,
            title=goal.title,
            target_weight_grams=goal.target_weight_grams,
            progress_percentage=progress_percentage(current_holdings, goal.target_weight_grams),
            deadline=goal.deadline,
            is_completed=goal.is_completed,
        )
        for goal in goals
    ]


class GoalService:
    """Goal management, the goal-progress query and explicit goal completion."""

    @staticmethod
    def create_goal(
        user_id: int,
        target_weight_grams: Number,
        deadline: datetime,
        title: str,
        description: Optional[str] = None
    ) -> GoldGoal:
        """
        Create a goal for an existing user.

        Raises:
            NotFoundError: the user does not exist
            ValidationError: the target weight is not positive
        """
        if UserRepository.get_by_id(user_id) is None:
            raise NotFoundError(f"User with id {user_id} not found")
        return GoalRepository.add(user_id, target_weight_grams, deadline, title, description)

    @staticmethod
    def update_goal(goal_id: int, user_id: int, **changes) -> GoldGoal:
        """Update fields of a user's goal. Raises NotFoundError if it is missing."""
        goal = GoalRepository.update(goal_id, user_id, **changes)
        if goal is None:
            raise NotFoundError(f"Goal with id {goal_id} not found")
        return goal

    @staticmethod
    def get_goal(goal_id: int, user_id: int) -> Optional[GoldGoal]:
        return GoalRepository.get_by_id(goal_id, user_id)

    @staticmethod
    def delete_goal(goal_id: int, user_id: int) -> bool:
        return GoalRepository.delete(goal_id, user_id)

    @staticmethod
    def get_goals_progress(user_id: int) -> List[GoalProgress]:
        """Progress of every goal of a user, earliest deadline first."""
        with Session(get_engine()) as session:
            goals = GoalRepository.get_by_user(user_id, session=session)
            transactions = TransactionRepository.get_by_user(user_id, session=session)
        return evaluate_goals(goals, compute_holdings(transactions))

    @staticmethod
    def mark_completed(goal_id: int, user_id: int) -> GoldGoal:
        """Mark a goal completed. Raises NotFoundError if it is missing or not the user's."""
        goal = GoalRepository.mark_completed(goal_id, user_id)
        if goal is None:
            raise NotFoundError(f"Goal {goal_id} not found for user {user_id}")
        logger.info(f"Goal {goal_id} marked completed for user {user_id}")
        return goal
