from typing import Dict, Any, List, Tuple
from sqlalchemy.orm import Session
from app.data.models.cart_item import CartItemModel
from app.repos.cart_repo import CartRepo
from app.repos.product_repo import ProductRepo
from app.repos.user_repo import UserRepo
from app.services.pricing import summarize
from app.utils.logging import get_logger

logger = get_logger(__name__)


def aggregate_lines(items: List[CartItemModel]) -> List[Tuple[int, str, int]]:
    """
    Zwraca (product_id, color, quantity) z zsumowanymi duplikatami,
    w kolejnosci pierwszego wystapienia.
    """
    totals: Dict[Tuple[int, str], int] = {}
    for item in items:
        key = (item.product_id, item.color or "")
        totals[key] = totals.get(key, 0) + item.quantity
    return [(pid, color, qty) for (pid, color), qty in totals.items()]


class CartService:
    """
    Prosta implementacja cqrs dla koszyka usera
    commands (add, update, remove, clear) modyfikuja stan
    query (get) tylko odczyt, ceny zawsze aktualne z katalogu
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.users = UserRepo(db)

    #query - odczyt
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        items = self.repo.get_cart_items(user_id)
        summary = summarize((i.product.price, i.quantity) for i in items)

        #dict przeksztalcany w jsona
        return {
            "user_id": user_id,
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "name": i.product.name,
                    "color": i.color,
                    "quantity": i.quantity,
                    "price": i.product.price,
                    "stock": i.product.stock,
                }
                for i in items
            ],
            "count": len(items),
            **summary.as_dict(),
        }

    #commands
    def add_item(self, user_id: int, product_id: int, quantity: int, color: str = "") -> Dict[str, Any]:
        # Walidacje
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        if not self.users.get_user(user_id):
            raise ValueError("User not found")

        product = self.products.get_product(product_id)
        if not product:
            raise ValueError("Product not found")

        color = color or ""
        if color and product.colors and color not in product.colors:
            raise ValueError(f"Color '{color}' is not available for this product")

        existing = self.repo.get_cart_line(user_id, product_id, color)
        if existing:
            logger.info(
                f"Produkt {product_id}/{color or '-'} juz jest w koszyku usera {user_id}, "
                f"ilosc {existing.quantity} -> {existing.quantity + quantity}"
            )
            existing.quantity += quantity
        else:
            logger.info(f"Dodaje produkt {product_id}/{color or '-'} do koszyka usera {user_id}")
            self.repo.add_cart_item(
                CartItemModel(
                    user_id=user_id,
                    product_id=product_id,
                    color=color,
                    quantity=quantity,
                )
            )

        self.repo.commit()
        return self.get_cart(user_id)

    def update_quantity(self, user_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity < 1:
            raise ValueError("Invalid quantity")

        item = self._own_item(user_id, item_id)
        item.quantity = quantity
        self.repo.commit()
        return self.get_cart(user_id)

    def remove_item(self, user_id: int, item_id: int) -> Dict[str, Any]:
        item = self._own_item(user_id, item_id)
        self.repo.delete_cart_item(item)
        self.repo.commit()
        logger.info(f"Pozycja {item_id} usunieta z koszyka usera {user_id}")
        return self.get_cart(user_id)

    def clear_cart(self, user_id: int) -> Dict[str, Any]:
        removed = self.repo.clear_cart(user_id)
        self.repo.commit()
        logger.info(f"Koszyk usera {user_id} wyczyszczony ({removed} pozycji)")
        return self.get_cart(user_id)

    def _own_item(self, user_id: int, item_id: int) -> CartItemModel:
        item = self.repo.get_cart_item(item_id)
        if not item:
            raise LookupError("Cart item not found")
        if item.user_id != user_id:
            raise PermissionError("No access to this cart item")
        return item
