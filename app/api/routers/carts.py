#app/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.domain.schemas import ItemIn, QuantityIn, CartOut
from app.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("/", response_model=CartOut)
def get_cart(user_id: int = Query(...), db: Session = Depends(get_db)):
    svc = get_service(db)
    return svc.get_cart(user_id)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.add_item(
            user_id=user_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
            color=payload.color,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: int,
    payload: QuantityIn,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.update_quantity(user_id, item_id, payload.quantity)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(
    item_id: int,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.remove_item(user_id, item_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/", response_model=CartOut)
def clear_cart(user_id: int = Query(...), db: Session = Depends(get_db)):
    svc = get_service(db)
    return svc.clear_cart(user_id)
