# app/repos/user_repo.py
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.data.models.user import UserModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def get_by_email(self, email: str) -> UserModel | None:
        # e-mail sluzy do potwierdzen zamowien, porownujemy bez wielkosci liter
        return self.db.execute(
            select(UserModel).where(func.lower(UserModel.email) == email.lower())
        ).scalars().first()

    def create_user(self, user: UserModel) -> UserModel:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user
