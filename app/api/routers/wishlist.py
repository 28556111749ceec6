# app/api/routers/wishlist.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.domain.schemas import (
    WishlistCheckOut,
    WishlistItemIn,
    WishlistItemOut,
    WishlistShareIn,
    WishlistShareOut,
)
from app.services.wishlist_service import WishlistService

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


def get_service(db: Session = Depends(get_db)) -> WishlistService:
    return WishlistService(db)


@router.get("/", response_model=List[WishlistItemOut])
def list_wishlist(user_id: int = Query(...), svc: WishlistService = Depends(get_service)):
    return svc.list_items(user_id)


@router.post("/", response_model=WishlistItemOut, status_code=201)
def add_to_wishlist(
    payload: WishlistItemIn,
    user_id: int = Query(...),
    svc: WishlistService = Depends(get_service),
):
    try:
        return svc.add_item(user_id, payload.product_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/check", response_model=WishlistCheckOut)
def check_wishlist(
    product_id: int = Query(...),
    user_id: int = Query(...),
    svc: WishlistService = Depends(get_service),
):
    return {"is_wishlisted": svc.is_wishlisted(user_id, product_id)}


@router.post("/share", response_model=WishlistShareOut)
def share_wishlist(
    payload: WishlistShareIn,
    user_id: int = Query(...),
    svc: WishlistService = Depends(get_service),
):
    try:
        return svc.share(user_id, payload.platform)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{item_id}", status_code=204)
def remove_from_wishlist(
    item_id: int,
    user_id: int = Query(...),
    svc: WishlistService = Depends(get_service),
):
    try:
        svc.remove_item(user_id, item_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
