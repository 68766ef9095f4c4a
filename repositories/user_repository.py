"""
User Repository - data access layer for User model.
"""

from typing import Optional
from sqlmodel import Session

from db_engine import get_engine
from models import User


class UserRepository:
    """Repository for User CRUD operations."""

    @staticmethod
    def add(email: str, name: str, session: Optional[Session] = None) -> User:
        """Create a user with a unique email address."""
        def _create_user(sess: Session) -> User:
            user = User(email=email, name=name)
            sess.add(user)
            sess.commit()
            sess.refresh(user)
            return user

        if session is not None:
            return _create_user(session)
        else:
            with Session(get_engine()) as session:
                return _create_user(session)

    @staticmethod
    def get_by_id(user_id: int, session: Optional[Session] = None) -> Optional[User]:
        """Retrieve a user by ID."""
        if session is not None:
            return session.get(User, user_id)
        with Session(get_engine()) as session:
            return session.get(User, user_id)

