"""In-process cart registry: one open cart per cashier session."""
from typing import Dict, List

from .cart import Cart
from .errors import CartNotFoundError
from .logging_config import get_logger

logger = get_logger("registry")


class CartRegistry:
    def __init__(self):
        self._carts: Dict[str, Cart] = {}

    def open(self) -> Cart:
        cart = Cart()
        self._carts[cart.id] = cart
        logger.info(f"[CART] Opened cart {cart.id}")
        return cart

    def get(self, cart_id: str) -> Cart:
        cart = self._carts.get(cart_id)
        if cart is None:
            raise CartNotFoundError(cart_id)
        return cart

    def discard(self, cart_id: str) -> None:
        cart = self._carts.pop(cart_id, None)
        if cart is None:
            raise CartNotFoundError(cart_id)
        cart.clear()
        logger.info(f"[CART] Closed cart {cart_id}")

    def open_ids(self) -> List[str]:
        return list(self._carts)


registry = CartRegistry()


def get_registry() -> CartRegistry:
    """Dependency injection for FastAPI."""
    return registry
