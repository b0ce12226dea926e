"""
Per-user shopping carts.

A cart is created on the first add and never deleted. Every mutation reads
the cart, changes it in memory and writes the whole document back, so two
concurrent requests for the same user can overwrite each other (last write
wins).
"""

import logging
from typing import Any, Dict, Optional

from pydantic import Field

from database import Database, serialize_doc, to_object_id
from errors import NotFound, ValidationError, handles_errors
from schemas import Cart as CartSchema, CartItem as CartItemSchema, Document

logger = logging.getLogger(__name__)


class CartItemIn(Document):
    product_id: Optional[str] = Field(default=None, alias="productId")
    quantity: Optional[int] = Field(default=1, ge=1)


class CartProductIn(Document):
    product_id: Optional[str] = Field(default=None, alias="productId")


def _require_product_id(product_id: Optional[str]) -> str:
    if not product_id:
        raise ValidationError("Product ID is required")
    if to_object_id(product_id) is None:
        raise ValidationError("Invalid product id")
    return product_id


def _find_item(cart: Dict[str, Any], product_id: str) -> Optional[Dict[str, Any]]:
    return next((it for it in cart.get("products", []) if it["productId"] == product_id), None)


class CartHandler:
    def __init__(self, db: Database):
        self.carts = db.carts
        self.products = db.products

    def _load(self, user_id: str) -> Dict[str, Any]:
        cart = self.carts.find_one({"userId": user_id})
        if not cart:
            raise NotFound("Cart not found")
        return cart

    def _find_or_create(self, user_id: str) -> Dict[str, Any]:
        defaults = CartSchema(user_id=user_id).model_dump(by_alias=True)
        return self.carts.upsert({"userId": user_id}, defaults)

    def _save(self, cart: Dict[str, Any]) -> Dict[str, Any]:
        return serialize_doc(self.carts.save(cart))

    @handles_errors("Error retrieving cart")
    def get(self, user_id: str) -> Dict[str, Any]:
        cart = serialize_doc(self._load(user_id))
        items = []
        for it in cart.get("products", []):
            product = self.products.find_by_id(it["productId"])
            items.append({"productId": serialize_doc(product), "quantity": it["quantity"]})
        cart["products"] = items
        return cart

    @handles_errors("Error adding to cart")
    def add(self, user_id: str, product_id: Optional[str], quantity: Optional[int] = 1) -> Dict[str, Any]:
        product_id = _require_product_id(product_id)
        if quantity is None:
            quantity = 1
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        cart = self._find_or_create(user_id)
        existing = _find_item(cart, product_id)
        if existing:
            # no clamp against product stock
            existing["quantity"] += quantity
        else:
            item = CartItemSchema(product_id=product_id, quantity=quantity)
            cart.setdefault("products", []).append(item.model_dump(by_alias=True))
        logger.info("Added %d x %s to cart of user %s", quantity, product_id, user_id)
        return self._save(cart)

    @handles_errors("Error increasing quantity")
    def increase(self, user_id: str, product_id: Optional[str]) -> Dict[str, Any]:
        product_id = _require_product_id(product_id)
        cart = self._load(user_id)
        existing = _find_item(cart, product_id)
        if not existing:
            raise NotFound("Product not found in cart")
        existing["quantity"] += 1
        return self._save(cart)

    @handles_errors("Error decreasing quantity")
    def decrease(self, user_id: str, product_id: Optional[str]) -> Dict[str, Any]:
        product_id = _require_product_id(product_id)
        cart = self._load(user_id)
        existing = _find_item(cart, product_id)
        if not existing:
            raise NotFound("Product not found in cart")
        if existing["quantity"] > 1:
            existing["quantity"] -= 1
        else:
            cart["products"] = [it for it in cart["products"] if it["productId"] != product_id]
        return self._save(cart)

    @handles_errors("Error removing from cart")
    def remove(self, user_id: str, product_id: str) -> Dict[str, Any]:
        cart = self._load(user_id)
        cart["products"] = [it for it in cart.get("products", []) if it["productId"] != product_id]
        return self._save(cart)
