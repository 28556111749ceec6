# app/services/wishlist_service.py
from urllib.parse import quote

from sqlalchemy.orm import Session

from app.data.models.wishlist_item import WishlistItemModel
from app.repos.product_repo import ProductRepo
from app.repos.user_repo import UserRepo
from app.repos.wishlist_repo import WishlistRepo
from app.utils.settings import APP_URL, BUSINESS_NAME
from app.utils.logging import get_logger

logger = get_logger(__name__)

SHARE_PLATFORMS = ("whatsapp", "facebook", "twitter", "email")


class WishlistService:
    """
    -lista zyczen usera (jeden wpis na produkt)
    -link do udostepnienia listy na wybranej platformie
    """

    def __init__(self, db: Session):
        self.repo = WishlistRepo(db)
        self.products = ProductRepo(db)
        self.users = UserRepo(db)

    def list_items(self, user_id: int) -> list[WishlistItemModel]:
        return self.repo.list_for_user(user_id)

    def add_item(self, user_id: int, product_id: int) -> WishlistItemModel:
        if not self.users.get_user(user_id):
            raise LookupError("User not found")
        if not self.products.get_product(product_id):
            raise LookupError("Product not found")
        if self.repo.get_user_product(user_id, product_id):
            raise ValueError("Item already in wishlist")

        item = self.repo.add(WishlistItemModel(user_id=user_id, product_id=product_id))
        logger.info(f"Product {product_id} added to wishlist of user {user_id}")
        return item

    def remove_item(self, user_id: int, item_id: int) -> None:
        item = self.repo.get_item(item_id)
        if not item:
            raise LookupError("Wishlist item not found")
        if item.user_id != user_id:
            raise PermissionError("Wishlist item belongs to another user")
        self.repo.delete(item)

    def is_wishlisted(self, user_id: int, product_id: int) -> bool:
        return self.repo.get_user_product(user_id, product_id) is not None

    def share(self, user_id: int, platform: str) -> dict:
        platform = (platform or "").lower()
        if platform not in SHARE_PLATFORMS:
            raise ValueError("Unsupported platform")

        items = self.repo.list_for_user(user_id)
        if not items:
            raise ValueError("Wishlist is empty")

        product_list = "\n".join(f"{i.product.name} - Rs. {i.product.price}" for i in items)
        message = f"Check out my wishlist from {BUSINESS_NAME}:\n\n{product_list}\n\nVisit: {APP_URL}"
        text = quote(message)

        if platform == "whatsapp":
            share_url = f"https://wa.me/?text={text}"
        elif platform == "facebook":
            share_url = f"https://www.facebook.com/sharer/sharer.php?quote={text}"
        elif platform == "twitter":
            share_url = f"https://twitter.com/intent/tweet?text={text}"
        else:
            subject = quote(f"Check out my {BUSINESS_NAME} wishlist")
            share_url = f"mailto:?subject={subject}&body={text}"

        return {"share_url": share_url, "message": message}
