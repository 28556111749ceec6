# app/api/routers/addresses.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.domain.schemas import AddressCreate, AddressOut
from app.services.address_service import AddressService

router = APIRouter(prefix="/addresses", tags=["addresses"])


@router.post("/", response_model=AddressOut, status_code=201)
def create_address(
    payload: AddressCreate,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    try:
        return AddressService(db).create_address(user_id, payload)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/", response_model=List[AddressOut])
def list_addresses(user_id: int = Query(...), db: Session = Depends(get_db)):
    return AddressService(db).list_addresses(user_id)
