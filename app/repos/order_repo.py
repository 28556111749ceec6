# app/repos/order_repo.py
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel, PendingOrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: str) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_order_with_items(self, order_id: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .options(
                selectinload(OrderModel.items).selectinload(OrderItemModel.product),
                selectinload(OrderModel.address),
            )
            .where(OrderModel.id == order_id)
        ).scalar_one_or_none()

    def get_by_transaction_id(self, merchant_transaction_id: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(
                OrderModel.merchant_transaction_id == merchant_transaction_id
            )
        ).scalar_one_or_none()

    def list_orders(self, user_id: int | None = None, status: str | None = None) -> list[OrderModel]:
        stmt = select(OrderModel).options(selectinload(OrderModel.items))
        if user_id is not None:
            stmt = stmt.where(OrderModel.user_id == user_id)
        if status is not None:
            stmt = stmt.where(OrderModel.status == status)
        return list(self.db.execute(stmt.order_by(OrderModel.created_at.desc())).scalars())

    def list_expired_pending(self, now: datetime) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel).where(
                    OrderModel.status == "pending",
                    OrderModel.expires_at.is_not(None),
                    OrderModel.expires_at < now,
                )
            ).scalars()
        )

    def get_pending_items(self, order_id: str) -> list[PendingOrderItemModel]:
        return list(
            self.db.execute(
                select(PendingOrderItemModel)
                .where(PendingOrderItemModel.order_id == order_id)
                .order_by(PendingOrderItemModel.id)
            ).scalars()
        )

    def add_pending_item(self, item: PendingOrderItemModel) -> None:
        self.db.add(item)

    def add_order_item(self, item: OrderItemModel) -> None:
        self.db.add(item)

    def transition_status(self, order_id: str, from_status: str, new_data: dict) -> int:
        """
        Warunkowy update statusu:
        update orders set ... where id = ? and status = ?
        0 rows affected oznacza ze ktos inny juz zmienil status.
        """
        result = self.db.execute(
            update(OrderModel)
            .where(
                OrderModel.id == order_id,
                OrderModel.status == from_status,
            )
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def refresh(self, order: OrderModel) -> OrderModel:
        self.db.refresh(order)
        return order

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
