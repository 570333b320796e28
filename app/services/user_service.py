import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.security import hash_password
from app.models.user import User
from app.utils.errors import UserAlreadyExistsError, UserNotFoundError

logger = logging.getLogger(__name__)


class UserService:
    @staticmethod
    def get_user(db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == int(user_id)).first()
        if not user:
            raise UserNotFoundError("User not found")
        return user

    @staticmethod
    def get_user_by_username(db: Session, username: str) -> Optional[User]:
        return db.query(User).filter(User.username == username).first()

    @staticmethod
    def create_user(db: Session, username: str, password: str) -> User:
        """Insert a user with a hashed password; usernames are unique."""
        if UserService.get_user_by_username(db, username):
            raise UserAlreadyExistsError("Username already exists")

        user = User(username=username, password_hash=hash_password(password))
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same name
            db.rollback()
            raise UserAlreadyExistsError("Username already exists")
        db.refresh(user)
        logger.info("Created user %s (id=%s)", user.username, user.id)
        return user
