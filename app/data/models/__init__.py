#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from app.data.models.user import UserModel
from app.data.models.product import ProductModel
from app.data.models.address import AddressModel
from app.data.models.cart_item import CartItemModel
from app.data.models.order import OrderModel, ORDER_STATUSES
from app.data.models.order_item import OrderItemModel, PendingOrderItemModel
from app.data.models.wishlist_item import WishlistItemModel
from app.data.models.review import ReviewModel, ReviewVoteModel

__all__ = [
    "UserModel",
    "ProductModel",
    "AddressModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "PendingOrderItemModel",
    "WishlistItemModel",
    "ReviewModel",
    "ReviewVoteModel",
    "ORDER_STATUSES",
]
