# app/services/review_service.py
from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from app.data.models.review import ReviewModel, ReviewVoteModel
from app.repos.product_repo import ProductRepo
from app.repos.review_repo import ReviewRepo
from app.repos.user_repo import UserRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)

# recenzja ma depth 0, najglebsza odpowiedz MAX_REPLY_DEPTH
MAX_REPLY_DEPTH = 3
VOTE_TYPES = (1, -1, 0)


def review_to_dict(review: ReviewModel, user_vote: int | None = None) -> Dict[str, Any]:
    return {
        "id": review.id,
        "product_id": review.product_id,
        "parent_id": review.parent_id,
        "user_id": review.user_id,
        "user_name": review.user_name,
        "rating": review.rating,
        "comment": review.comment,
        "verified": review.verified,
        "depth": review.depth,
        "vote_count": review.vote_count,
        "created_at": review.created_at,
        "user_vote": user_vote,
        "replies": [],
    }


class ReviewService:
    """
    Recenzje produktow z watkami odpowiedzi i glosowaniem.

    Ocena produktu (rating, review_count) liczona jest tylko z recenzji,
    odpowiedzi jej nie zmieniaja.
    """

    def __init__(self, db: Session):
        self.repo = ReviewRepo(db)
        self.products = ProductRepo(db)
        self.users = UserRepo(db)

    # =====================================================
    # QUERY
    # =====================================================
    def list_reviews(self, product_id: int, user_id: int | None = None) -> Dict[str, Any]:
        product = self.products.get_product(product_id)
        if not product:
            raise LookupError("Product not found")

        reviews = self.repo.list_for_product(product_id)
        votes = self.repo.user_votes(user_id, [r.id for r in reviews]) if user_id else {}

        # lista jest juz posortowana po glosach, dzieci dziedzicza kolejnosc
        nodes = {r.id: review_to_dict(r, votes.get(r.id)) for r in reviews}
        children = defaultdict(list)
        roots = []
        for review in reviews:
            if review.parent_id is None:
                roots.append(nodes[review.id])
            else:
                children[review.parent_id].append(nodes[review.id])

        for review_id, node in nodes.items():
            node["replies"] = children.get(review_id, [])

        return {
            "reviews": roots,
            "product": {"rating": product.rating, "review_count": product.review_count},
        }

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_review(
        self,
        product_id: int,
        user_name: str,
        comment: str,
        rating: int | None = None,
        user_id: int | None = None,
        parent_id: int | None = None,
    ) -> Dict[str, Any]:
        comment = (comment or "").strip()
        if not comment:
            raise ValueError("Comment cannot be empty")

        product = self.products.get_product(product_id)
        if not product:
            raise LookupError("Product not found")

        depth = 0
        if parent_id is not None:
            parent = self.repo.get_review(parent_id)
            if not parent:
                raise LookupError("Parent review not found")
            if parent.product_id != product_id:
                raise ValueError("Reply must belong to the same product")
            if parent.depth >= MAX_REPLY_DEPTH:
                raise ValueError("Reply thread is too deep")
            depth = parent.depth + 1
            rating = 0
        elif rating is None or not 1 <= rating <= 5:
            raise ValueError("Rating must be between 1 and 5 for reviews")

        verified = False
        if user_id is not None:
            if not self.users.get_user(user_id):
                raise LookupError("User not found")
            verified = self.repo.has_purchased(user_id, product_id)

        try:
            review = self.repo.add_review(
                ReviewModel(
                    product_id=product_id,
                    user_id=user_id,
                    parent_id=parent_id,
                    user_name=user_name.strip(),
                    rating=rating,
                    comment=comment,
                    verified=verified,
                    depth=depth,
                )
            )

            if parent_id is None:
                avg, count = self.repo.rating_stats(product_id)
                product.rating = Decimal(str(avg or 0)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
                product.review_count = count

            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        self.repo.refresh(review)
        logger.info(
            f"{'Reply' if parent_id else 'Review'} {review.id} posted on product {product_id}"
        )
        return review_to_dict(review)

    def vote(self, review_id: int, user_id: int, vote_type: int) -> Dict[str, int]:
        """
        1 = w gore, -1 = w dol, 0 = wycofanie glosu.
        vote_count przesuwa sie o roznice miedzy nowym a poprzednim glosem.
        """
        if vote_type not in VOTE_TYPES:
            raise ValueError("Invalid vote type. Use 1 for upvote, -1 for downvote, 0 to remove vote")

        review = self.repo.get_review(review_id)
        if not review:
            raise LookupError("Review not found")
        if not self.users.get_user(user_id):
            raise LookupError("User not found")

        existing = self.repo.get_vote(review_id, user_id)
        previous = existing.vote_type if existing else 0

        try:
            if vote_type == 0:
                if existing:
                    self.repo.delete_vote(existing)
            elif existing:
                existing.vote_type = vote_type
            else:
                self.repo.add_vote(ReviewVoteModel(review_id=review_id, user_id=user_id, vote_type=vote_type))

            if vote_type != previous:
                self.repo.shift_vote_count(review_id, vote_type - previous)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        self.repo.refresh(review)
        return {"vote_count": review.vote_count, "user_vote": vote_type}
