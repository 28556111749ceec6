# app/repos/product_repo.py
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.orm import Session

from app.data.models.product import ProductModel

SORT_OPTIONS = ("created_at", "price_asc", "price_desc", "name", "featured")


@dataclass
class ProductFilter:
    category: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    color: str | None = None
    featured: bool = False
    has_discount: bool = False
    search: str | None = None


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_by_slug(self, slug: str) -> ProductModel | None:
        return self.db.execute(
            select(ProductModel).where(ProductModel.slug == slug)
        ).scalar_one_or_none()

    @staticmethod
    def _filtered(stmt, f: ProductFilter):
        conditions = []
        if f.category:
            conditions.append(ProductModel.category == f.category)
        if f.min_price is not None:
            conditions.append(ProductModel.price >= f.min_price)
        if f.max_price is not None:
            conditions.append(ProductModel.price <= f.max_price)
        if f.color:
            # colors to lista JSON, szukamy elementu w postaci "kolor" razem z cudzyslowami
            conditions.append(cast(ProductModel.colors, String).contains(f'"{f.color}"', autoescape=True))
        if f.featured:
            conditions.append(ProductModel.featured.is_(True))
        if f.has_discount:
            conditions.append(ProductModel.original_price.is_not(None))
        if f.search:
            conditions.append(
                or_(
                    ProductModel.name.icontains(f.search, autoescape=True),
                    ProductModel.description.icontains(f.search, autoescape=True),
                )
            )
        for condition in conditions:
            stmt = stmt.where(condition)
        return stmt

    @staticmethod
    def _ordering(sort_by: str, descending: bool) -> list:
        if sort_by == "price_asc":
            return [ProductModel.price.asc(), ProductModel.id.asc()]
        if sort_by == "price_desc":
            return [ProductModel.price.desc(), ProductModel.id.asc()]
        if sort_by == "name":
            return [ProductModel.name.asc(), ProductModel.id.asc()]
        if sort_by == "featured":
            return [ProductModel.featured.desc(), ProductModel.created_at.desc(), ProductModel.id.desc()]
        if descending:
            return [ProductModel.created_at.desc(), ProductModel.id.desc()]
        return [ProductModel.created_at.asc(), ProductModel.id.asc()]

    def list_products(
        self,
        filters: ProductFilter | None = None,
        sort_by: str = "created_at",
        descending: bool = True,
        limit: int = 50,
        offset: int = 0,
    ) -> list[ProductModel]:
        stmt = (
            self._filtered(select(ProductModel), filters or ProductFilter())
            .order_by(*self._ordering(sort_by, descending))
            .limit(limit)
            .offset(offset)
        )
        return list(self.db.execute(stmt).scalars())

    def count_products(self, filters: ProductFilter | None = None) -> int:
        stmt = self._filtered(select(func.count(ProductModel.id)), filters or ProductFilter())
        return self.db.execute(stmt).scalar_one()

    def save(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product
