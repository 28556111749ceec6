from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, Numeric, String, Text

from app.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True, index=True)
    image = Column(String, nullable=True)

    price = Column(Numeric(10, 2), nullable=False)
    # cena przed przecena, ustawiona = produkt na wyprzedazy
    original_price = Column(Numeric(10, 2), nullable=True)
    stock = Column(Integer, nullable=False, default=0)
    colors = Column(JSON, nullable=False, default=list)
    featured = Column(Boolean, nullable=False, default=False)

    # przeliczane przy kazdej nowej recenzji (nie odpowiedzi)
    rating = Column(Numeric(2, 1), nullable=False, default=0)
    review_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
