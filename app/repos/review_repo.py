# app/repos/review_repo.py
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel
from app.data.models.review import ReviewModel, ReviewVoteModel


class ReviewRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_review(self, review_id: int) -> ReviewModel | None:
        return self.db.get(ReviewModel, review_id)

    def list_for_product(self, product_id: int) -> list[ReviewModel]:
        # recenzje i odpowiedzi razem, drzewo sklada serwis
        return list(
            self.db.execute(
                select(ReviewModel)
                .where(ReviewModel.product_id == product_id, ReviewModel.comment != "")
                .order_by(ReviewModel.vote_count.desc(), ReviewModel.id.asc())
            ).scalars()
        )

    def rating_stats(self, product_id: int) -> tuple[float | None, int]:
        avg, count = self.db.execute(
            select(func.avg(ReviewModel.rating), func.count(ReviewModel.id)).where(
                ReviewModel.product_id == product_id,
                ReviewModel.parent_id.is_(None),
                ReviewModel.comment != "",
            )
        ).one()
        return avg, count

    def has_purchased(self, user_id: int, product_id: int) -> bool:
        stmt = (
            select(OrderItemModel.id)
            .join(OrderModel, OrderModel.id == OrderItemModel.order_id)
            .where(
                OrderModel.user_id == user_id,
                OrderModel.status == "delivered",
                OrderItemModel.product_id == product_id,
            )
            .limit(1)
        )
        return self.db.execute(stmt).first() is not None

    def add_review(self, review: ReviewModel) -> ReviewModel:
        self.db.add(review)
        self.db.flush()
        return review

    def get_vote(self, review_id: int, user_id: int) -> ReviewVoteModel | None:
        return self.db.execute(
            select(ReviewVoteModel).where(
                ReviewVoteModel.review_id == review_id,
                ReviewVoteModel.user_id == user_id,
            )
        ).scalar_one_or_none()

    def user_votes(self, user_id: int, review_ids: list[int]) -> dict[int, int]:
        if not review_ids:
            return {}
        rows = self.db.execute(
            select(ReviewVoteModel.review_id, ReviewVoteModel.vote_type).where(
                ReviewVoteModel.user_id == user_id,
                ReviewVoteModel.review_id.in_(review_ids),
            )
        )
        return {review_id: vote_type for review_id, vote_type in rows}

    def add_vote(self, vote: ReviewVoteModel) -> None:
        self.db.add(vote)

    def delete_vote(self, vote: ReviewVoteModel) -> None:
        self.db.delete(vote)

    def shift_vote_count(self, review_id: int, delta: int) -> None:
        # inkrement w bazie, dwa rownolegle glosy sie nie nadpisza
        self.db.execute(
            update(ReviewModel)
            .where(ReviewModel.id == review_id)
            .values(vote_count=ReviewModel.vote_count + delta)
            .execution_options(synchronize_session=False)
        )

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

    def refresh(self, obj):
        self.db.refresh(obj)
