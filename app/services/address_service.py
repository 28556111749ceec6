# app/services/address_service.py
from sqlalchemy.orm import Session

from app.data.models.address import AddressModel
from app.domain.schemas import AddressCreate
from app.repos.address_repo import AddressRepo
from app.repos.user_repo import UserRepo


class AddressService:
    def __init__(self, db: Session):
        self.repo = AddressRepo(db)
        self.users = UserRepo(db)

    def create_address(self, user_id: int, payload: AddressCreate) -> AddressModel:
        if not self.users.get_user(user_id):
            raise ValueError("User not found")
        return self.repo.create_address(AddressModel(user_id=user_id, **payload.model_dump()))

    def list_addresses(self, user_id: int) -> list[AddressModel]:
        return self.repo.list_for_user(user_id)
