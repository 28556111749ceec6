from sqlalchemy import Column, Integer, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    color = Column(String, nullable=False, default="")

    quantity = Column(Integer, nullable=False)

    product = relationship("ProductModel")

    # jedna linia na (user, produkt, kolor), dodanie tej samej zwieksza ilosc
    __table_args__ = (UniqueConstraint("user_id", "product_id", "color", name="u_cart_line"),)
