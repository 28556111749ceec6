from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from app.data.database import Base


class ReviewModel(Base):
    """
    Recenzja albo odpowiedz (parent_id ustawione, rating = 0).
    depth = glebokosc w watku, 0 dla recenzji.
    """
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    parent_id = Column(Integer, ForeignKey("reviews.id"), nullable=True, index=True)

    user_name = Column(String, nullable=False)
    rating = Column(Integer, nullable=False, default=0)
    comment = Column(Text, nullable=False)
    verified = Column(Boolean, nullable=False, default=False)
    depth = Column(Integer, nullable=False, default=0)
    vote_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    votes = relationship("ReviewVoteModel", back_populates="review", cascade="all, delete-orphan")


class ReviewVoteModel(Base):
    __tablename__ = "review_votes"

    id = Column(Integer, primary_key=True)
    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    # 1 = w gore, -1 = w dol
    vote_type = Column(Integer, nullable=False)

    review = relationship("ReviewModel", back_populates="votes")

    # jeden glos usera na recenzje
    __table_args__ = (UniqueConstraint("review_id", "user_id", name="u_review_vote"),)
