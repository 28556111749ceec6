# app/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.domain.schemas import OrderOut
from app.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.get("/", response_model=List[OrderOut])
def list_orders(user_id: int = Query(...), db: Session = Depends(get_db)):
    """
    Zamówienia użytkownika, najnowsze pierwsze.
    """
    svc = get_service(db)
    return svc.list_orders(user_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    """
    Pobiera szczegóły zamówienia (pozycje + adres).
    """
    svc = get_service(db)
    try:
        return svc.get_order(order_id, user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
