# app/repos/address_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.data.models.address import AddressModel


class AddressRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_address(self, address_id: int) -> AddressModel | None:
        return self.db.get(AddressModel, address_id)

    def get_user_address(self, address_id: int, user_id: int) -> AddressModel | None:
        return self.db.execute(
            select(AddressModel).where(
                AddressModel.id == address_id,
                AddressModel.user_id == user_id,
            )
        ).scalar_one_or_none()

    def list_for_user(self, user_id: int) -> list[AddressModel]:
        return list(
            self.db.execute(
                select(AddressModel)
                .where(AddressModel.user_id == user_id)
                .order_by(AddressModel.id)
            ).scalars()
        )

    def create_address(self, address: AddressModel) -> AddressModel:
        if address.is_default:
            # tylko jeden domyslny adres na usera
            self.db.execute(
                update(AddressModel)
                .where(AddressModel.user_id == address.user_id)
                .values(is_default=False)
            )
        self.db.add(address)
        self.db.commit()
        self.db.refresh(address)
        return address
