# app/data/seed.py
from decimal import Decimal

from app.data.database import SessionLocal
from app.data.models import UserModel, ProductModel, AddressModel

PRODUCTS = [
    {"name": "Oslo Three-Seater Sofa", "slug": "oslo-sofa", "category": "sofas", "featured": True, "description": "Deep-seat sofa in woven fabric", "price": Decimal("48999.00"), "stock": 12, "colors": ["grey", "beige"]},
    {"name": "Teak Dining Table", "slug": "teak-dining-table", "category": "tables", "description": "Solid teak, seats six", "price": Decimal("32500.00"), "stock": 5, "colors": ["natural"]},
    {"name": "Rattan Lounge Chair", "slug": "rattan-lounge-chair", "category": "chairs", "price": Decimal("8999.00"), "original_price": Decimal("10999.00"), "stock": 30, "colors": ["natural", "black"]},
    {"name": "Linen Bed Frame", "slug": "linen-bed-frame", "category": "beds", "price": Decimal("56000.00"), "stock": 4, "colors": ["sand"]},
]


def seed():
    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            return

        db.add_all(ProductModel(**p) for p in PRODUCTS)

        user = UserModel(id=1, name="Demo Customer", email="demo@example.com")
        db.add(user)
        db.flush()
        db.add(
            AddressModel(
                user_id=user.id,
                street="12 MG Road",
                city="Bengaluru",
                state="Karnataka",
                postal_code="560001",
                is_default=True,
            )
        )
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    seed()
