# app/api/routers/products.py
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.domain.schemas import ProductOut
from app.repos.product_repo import ProductFilter
from app.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/", response_model=List[ProductOut])
def list_products(
    response: Response,
    category: str | None = Query(None),
    min_price: Decimal | None = Query(None, alias="minPrice", ge=0),
    max_price: Decimal | None = Query(None, alias="maxPrice", ge=0),
    color: str | None = Query(None),
    featured: bool = Query(False),
    has_discount: bool = Query(False, alias="hasDiscount"),
    search: str | None = Query(None, max_length=100),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    filters = ProductFilter(
        category=category,
        min_price=min_price,
        max_price=max_price,
        color=color,
        featured=featured,
        has_discount=has_discount,
        search=search,
    )
    try:
        products, total = ProductService(db).list_products(
            filters, sort_by=sort_by, sort_order=sort_order, page=page, limit=limit
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    # lista zostaje lista, stronicowanie w naglowkach
    response.headers["X-Total-Count"] = str(total)
    response.headers["X-Total-Pages"] = str(-(-total // limit))
    return products


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    try:
        return ProductService(db).get_product(product_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
