# app/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime


class UserCreate(BaseModel):
    """Schema dla tworzenia użytkownika."""

    id: int = Field(..., gt=0, description="ID użytkownika (musi być > 0)")
    name: str = Field(..., min_length=1, max_length=100, description="Imię użytkownika")
    email: str | None = Field(None, max_length=255, description="Adres e-mail do potwierdzeń")


class UserRead(BaseModel):
    """Schema dla użytkownika (response)."""

    id: int
    name: str
    email: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    description: str | None = None
    category: str | None = None
    price: Decimal = Field(..., gt=0)
    original_price: Decimal | None = Field(None, gt=0)
    stock: int = Field(0, ge=0)
    image: str | None = None
    colors: List[str] = []
    featured: bool = False


class ProductUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    category: str | None = None
    price: Decimal | None = Field(None, gt=0)
    original_price: Decimal | None = Field(None, gt=0)
    featured: bool | None = None
    stock: int | None = Field(None, ge=0)
    image: str | None = None
    colors: List[str] | None = None


class ProductOut(BaseModel):
    id: int
    name: str
    slug: str
    description: str | None = None
    category: str | None = None
    price: Decimal
    original_price: Decimal | None = None
    stock: int
    image: str | None = None
    colors: List[str] = []
    featured: bool = False
    rating: Decimal = Decimal("0")
    review_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class AddressCreate(BaseModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    country: str = "India"
    is_default: bool = False


class AddressOut(AddressCreate):
    id: int
    user_id: int

    model_config = ConfigDict(from_attributes=True)


class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    quantity: int = Field(1, gt=0, description="Ilość produktu (musi być > 0)")
    color: str = Field("", max_length=50)


class QuantityIn(BaseModel):
    quantity: int


class CartItemOut(BaseModel):
    """Schema dla produktu w koszyku (response)."""

    id: int
    product_id: int
    name: str
    color: str
    quantity: int
    price: Decimal
    stock: int


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    user_id: int
    items: List[CartItemOut]
    count: int
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal


class OrderItemOut(BaseModel):
    product_id: int
    color: str
    quantity: int
    price: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema dla zamówienia (response)."""

    id: str
    user_id: int
    status: str
    total_amount: Decimal
    payment_method: str | None = None
    address_id: int | None = None
    created_at: datetime
    updated_at: datetime | None = None
    items: List[OrderItemOut] = []
    address: AddressOut | None = None

    model_config = ConfigDict(from_attributes=True)


class OrderStatusUpdate(BaseModel):
    status: str


class PaymentInitiateIn(BaseModel):
    """Kwota opcjonalna, jesli podana musi zgadzac sie z wyliczona przez serwer."""

    address_id: int | None = None
    mobile_number: str | None = None
    amount: Decimal | None = None


class PaymentInitiateOut(BaseModel):
    redirect_url: str
    merchant_transaction_id: str
    order_id: str


class WebhookIn(BaseModel):
    response: str


class WebhookOut(BaseModel):
    outcome: str
    order_id: str | None = None


class WishlistItemIn(BaseModel):
    product_id: int = Field(..., gt=0)


class WishlistItemOut(BaseModel):
    id: int
    product_id: int
    created_at: datetime
    product: ProductOut

    model_config = ConfigDict(from_attributes=True)


class WishlistCheckOut(BaseModel):
    is_wishlisted: bool


class WishlistShareIn(BaseModel):
    platform: str


class WishlistShareOut(BaseModel):
    share_url: str
    message: str


class ReviewCreate(BaseModel):
    """Recenzja (rating 1-5) albo odpowiedz w watku (parent_id, bez ratingu)."""

    product_id: int = Field(..., gt=0)
    user_name: str = Field(..., min_length=1, max_length=100)
    comment: str = Field(..., max_length=5000)
    rating: int | None = None
    user_id: int | None = None
    parent_id: int | None = None


class ReviewOut(BaseModel):
    id: int
    product_id: int
    parent_id: int | None = None
    user_id: int | None = None
    user_name: str
    rating: int
    comment: str
    verified: bool
    depth: int
    vote_count: int
    created_at: datetime
    user_vote: int | None = None
    replies: List["ReviewOut"] = []


class ProductRatingOut(BaseModel):
    rating: Decimal
    review_count: int


class ReviewListOut(BaseModel):
    reviews: List[ReviewOut]
    product: ProductRatingOut


class ReviewVoteIn(BaseModel):
    review_id: int = Field(..., gt=0)
    vote_type: int


class ReviewVoteOut(BaseModel):
    vote_count: int
    user_vote: int
