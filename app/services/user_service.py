# app/services/user_service.py
from sqlalchemy.orm import Session

from app.data.models.user import UserModel
from app.domain.schemas import UserCreate, UserRead
from app.repos.user_repo import UserRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        """Idempotentne: istniejacy user o tym id jest zwracany bez zmian."""
        existing = self.repo.get_user(payload.id)
        if existing:
            return UserRead.model_validate(existing)

        if payload.email:
            owner = self.repo.get_by_email(payload.email)
            if owner:
                raise ValueError("Email already registered")

        created = self.repo.create_user(
            UserModel(id=payload.id, name=payload.name, email=payload.email)
        )
        logger.info(f"User {created.id} created")
        return UserRead.model_validate(created)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise LookupError("User not found")
        return UserRead.model_validate(user)
