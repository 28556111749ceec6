# app/services/product_service.py
from decimal import Decimal

from sqlalchemy.orm import Session

from app.data.models.product import ProductModel
from app.domain.schemas import ProductCreate, ProductUpdate
from app.repos.product_repo import SORT_OPTIONS, ProductFilter, ProductRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


class ProductService:
    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def list_products(
        self,
        filters: ProductFilter | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[ProductModel], int]:
        """
        Katalog: filtry, sortowanie i stronicowanie.
        Zwraca (produkty ze strony, liczba wszystkich pasujacych).
        """
        if sort_by not in SORT_OPTIONS:
            raise ValueError(f"Unsupported sort: {sort_by}")
        if sort_order not in ("asc", "desc"):
            raise ValueError(f"Unsupported sort order: {sort_order}")

        filters = filters or ProductFilter()
        if (
            filters.min_price is not None
            and filters.max_price is not None
            and filters.min_price > filters.max_price
        ):
            raise ValueError("minPrice cannot exceed maxPrice")

        products = self.repo.list_products(
            filters,
            sort_by=sort_by,
            descending=sort_order == "desc",
            limit=limit,
            offset=(page - 1) * limit,
        )
        return products, self.repo.count_products(filters)

    def get_product(self, product_id: int) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product:
            raise ValueError("Product not found")
        return product

    def create_product(self, payload: ProductCreate) -> ProductModel:
        if self.repo.get_by_slug(payload.slug):
            raise ValueError("Product with this slug already exists")

        product = self.repo.save(ProductModel(**payload.model_dump()))
        logger.info(f"Product {product.id} created ({product.slug})")
        return product

    def update_product(self, product_id: int, payload: ProductUpdate) -> ProductModel:
        product = self.get_product(product_id)

        changes = payload.model_dump(exclude_unset=True)
        if "price" in changes and changes["price"] != product.price:
            # ceny w zamowieniach w toku sa juz w snapshotach, ta zmiana ich nie dotyczy
            logger.info(f"Product {product_id} price {product.price} -> {Decimal(changes['price'])}")

        for key, value in changes.items():
            setattr(product, key, value)
        return self.repo.save(product)
