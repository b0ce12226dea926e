import logging
from typing import Any, Dict, Optional

from pydantic import Field

from database import Database, serialize_doc, to_object_id
from errors import DuplicateError, NotFound, ValidationError, handles_errors
from schemas import Document, Wishlist as WishlistSchema, WishlistItem as WishlistItemSchema

logger = logging.getLogger(__name__)


class WishlistItemIn(Document):
    product_id: Optional[str] = Field(default=None, alias="productId")


class WishlistHandler:
    def __init__(self, db: Database):
        self.wishlists = db.wishlists
        self.products = db.products

    def _load(self, user_id: str) -> Dict[str, Any]:
        wishlist = self.wishlists.find_one({"userId": user_id})
        if not wishlist:
            raise NotFound("Wishlist not found")
        return wishlist

    @handles_errors("Error fetching wishlist")
    def get(self, user_id: str) -> Dict[str, Any]:
        wishlist = serialize_doc(self._load(user_id))
        wishlist["products"] = [
            {"productId": serialize_doc(self.products.find_by_id(it["productId"]))}
            for it in wishlist.get("products", [])
        ]
        return wishlist

    @handles_errors("Error adding to wishlist")
    def add(self, user_id: str, product_id: Optional[str]) -> None:
        if not product_id:
            raise ValidationError("Product ID is required")
        if to_object_id(product_id) is None:
            raise ValidationError("Invalid product id")
        defaults = WishlistSchema(user_id=user_id).model_dump(by_alias=True)
        wishlist = self.wishlists.upsert({"userId": user_id}, defaults)
        products = wishlist.setdefault("products", [])
        if any(it["productId"] == product_id for it in products):
            raise DuplicateError("Product already in wishlist")
        products.append(WishlistItemSchema(product_id=product_id).model_dump(by_alias=True))
        self.wishlists.save(wishlist)
        logger.info("Added %s to wishlist of user %s", product_id, user_id)

    @handles_errors("Error removing from wishlist")
    def remove(self, user_id: str, product_id: str) -> None:
        wishlist = self._load(user_id)
        wishlist["products"] = [it for it in wishlist.get("products", []) if it["productId"] != product_id]
        self.wishlists.save(wishlist)
