# app/api/routers/reviews.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.domain.schemas import ReviewCreate, ReviewListOut, ReviewOut, ReviewVoteIn, ReviewVoteOut
from app.services.review_service import ReviewService

router = APIRouter(prefix="/reviews", tags=["reviews"])


def get_service(db: Session = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


@router.get("/", response_model=ReviewListOut)
def list_reviews(
    product_id: int = Query(...),
    user_id: int | None = Query(None),
    svc: ReviewService = Depends(get_service),
):
    """
    Recenzje produktu z odpowiedziami, najwyzej oceniane pierwsze.
    Z user_id kazdy wpis ma tez glos tego usera.
    """
    try:
        return svc.list_reviews(product_id, user_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/", response_model=ReviewOut, status_code=201)
def create_review(payload: ReviewCreate, svc: ReviewService = Depends(get_service)):
    try:
        return svc.create_review(**payload.model_dump())
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/vote", response_model=ReviewVoteOut)
def vote_review(
    payload: ReviewVoteIn,
    user_id: int = Query(...),
    svc: ReviewService = Depends(get_service),
):
    try:
        return svc.vote(payload.review_id, user_id, payload.vote_type)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
