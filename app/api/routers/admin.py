# app/api/routers/admin.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.domain.schemas import OrderOut, OrderStatusUpdate, ProductCreate, ProductOut, ProductUpdate
from app.services.order_service import OrderService
from app.services.product_service import ProductService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/orders", response_model=List[OrderOut])
def list_orders(status: str | None = Query(None), db: Session = Depends(get_db)):
    try:
        return OrderService(db).admin_list_orders(status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/orders/{order_id}", response_model=OrderOut)
def get_order(order_id: str, db: Session = Depends(get_db)):
    try:
        return OrderService(db).admin_get_order(order_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/orders/{order_id}", response_model=OrderOut)
def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
):
    """
    Zmiana statusu zamówienia, tylko do przodu.
    """
    try:
        return OrderService(db).update_status(order_id, payload.status)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/products", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    try:
        return ProductService(db).create_product(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/products/{product_id}", response_model=ProductOut)
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    try:
        return ProductService(db).update_product(product_id, payload)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
