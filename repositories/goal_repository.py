"""
Goal Repository - data access layer for GoldGoal model.
"""

from typing import Optional, List
from datetime import datetime
from sqlmodel import Session, select

from db_engine import get_engine
from errors import ValidationError
from models import GoldGoal
from models.numeric import Number, to_decimal, round_weight

_UNSET = object()


class GoalRepository:
    """Repository for GoldGoal CRUD operations. Every lookup is scoped to its owner."""

    @staticmethod
    def add(
        user_id: int,
        target_weight_grams: Number,
        deadline: datetime,
        title: str,
        description: Optional[str] = None,
        session: Optional[Session] = None
    ) -> GoldGoal:
        """
        Add a new gold savings goal.

        Args:
            user_id: Owner of the goal
            target_weight_grams: Weight to reach, must be positive
            deadline: Target date
            title: Short label
            description: Optional free-text note
            session: Optional existing session for transaction reuse

        Returns:
            Created GoldGoal object
        """
        target = to_decimal(target_weight_grams)
        if target <= 0:
            raise ValidationError(f"target_weight_grams must be positive, got {target_weight_grams}")

        def _create_goal(sess: Session) -> GoldGoal:
            goal = GoldGoal(
                user_id=user_id,
                target_weight_grams=round_weight(target),
                deadline=deadline,
                title=title,
                description=description,
                is_completed=False
            )
            sess.add(goal)
            sess.commit()
            sess.refresh(goal)
            return goal

        if session is not None:
            return _create_goal(session)
        else:
            with Session(get_engine()) as session:
                return _create_goal(session)

    @staticmethod
    def get_by_user(user_id: int, session: Optional[Session] = None) -> List[GoldGoal]:
        """Retrieve all goals for a user, earliest deadline first."""
        def _get_by_user(sess: Session) -> List[GoldGoal]:
            statement = select(GoldGoal).where(
                GoldGoal.user_id == user_id
            ).order_by(GoldGoal.deadline.asc(), GoldGoal.id.asc())
            return list(sess.exec(statement).all())

        if session is not None:
            return _get_by_user(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_user(session)

    @staticmethod
    def get_by_id(goal_id: int, user_id: int) -> Optional[GoldGoal]:
        """Retrieve a goal by ID, or None if missing or owned by someone else."""
        with Session(get_engine()) as session:
            goal = session.get(GoldGoal, goal_id)
            if goal is None or goal.user_id != user_id:
                return None
            return goal

    @staticmethod
    def update(
        goal_id: int,
        user_id: int,
        target_weight_grams: Optional[Number] = None,
        deadline: Optional[datetime] = None,
        title: Optional[str] = None,
        description=_UNSET,
        is_completed: Optional[bool] = None
    ) -> Optional[GoldGoal]:
        """Update the provided fields of a goal. Returns None if not found."""
        if target_weight_grams is not None and to_decimal(target_weight_grams) <= 0:
            raise ValidationError(f"target_weight_grams must be positive, got {target_weight_grams}")

        with Session(get_engine()) as session:
            goal = session.get(GoldGoal, goal_id)
            if goal is None or goal.user_id != user_id:
                return None
            if target_weight_grams is not None:
                goal.target_weight_grams = round_weight(target_weight_grams)
            if deadline is not None:
                goal.deadline = deadline
            if title is not None:
                goal.title = title
            if description is not _UNSET:
                goal.description = description
            if is_completed is not None:
                goal.is_completed = is_completed
            goal.updated_at = datetime.now()
            session.add(goal)
            session.commit()
            session.refresh(goal)
            return goal

    @staticmethod
    def mark_completed(goal_id: int, user_id: int) -> Optional[GoldGoal]:
        """Flag a goal as completed. Returns None if not found."""
        return GoalRepository.update(goal_id, user_id, is_completed=True)

    @staticmethod
    def delete(goal_id: int, user_id: int) -> bool:
        """Delete a goal owned by user_id. Returns False if nothing matched."""
        with Session(get_engine()) as session:
            try:
                goal = session.get(GoldGoal, goal_id)
                if goal and goal.user_id == user_id:
                    session.delete(goal)
                    session.commit()
                    return True
                return False
            except Exception:
                session.rollback()
                raise
