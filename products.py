import logging
from typing import Any, Dict, List, Optional

from pydantic import Field

from database import Database, serialize_doc, to_object_id
from errors import NotFound, handles_errors
from schemas import Document, Product as ProductSchema, Review as ReviewSchema

logger = logging.getLogger(__name__)


class ProductIn(Document):
    title: str
    author: str
    description: str
    cover_image: str = Field(..., alias="coverImage")
    price: float = Field(..., ge=0)
    rating: float = Field(default=0, ge=0, le=5)
    genre: str
    stock: int = Field(..., ge=0)


class ProductUpdate(Document):
    title: Optional[str] = None
    author: Optional[str] = None
    description: Optional[str] = None
    cover_image: Optional[str] = Field(default=None, alias="coverImage")
    price: Optional[float] = Field(default=None, ge=0)
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    genre: Optional[str] = None
    stock: Optional[int] = Field(default=None, ge=0)


class ReviewIn(Document):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class ProductHandler:
    def __init__(self, db: Database):
        self.products = db.products

    @handles_errors("Error creating product")
    def create(self, data: ProductIn) -> Dict[str, Any]:
        product = ProductSchema(**data.model_dump(by_alias=True))
        created = self.products.create(product.model_dump(by_alias=True))
        logger.info("Created product %s (%s)", created["_id"], product.title)
        return serialize_doc(created)

    @handles_errors("Error fetching products")
    def list_all(self) -> List[Dict[str, Any]]:
        return [serialize_doc(d) for d in self.products.find()]

    @handles_errors("Error fetching product")
    def get(self, product_id: str) -> Dict[str, Any]:
        product = self.products.find_by_id(product_id)
        if not product:
            raise NotFound("Product not found")
        return serialize_doc(product)

    @handles_errors("Error updating product")
    def update(self, product_id: str, data: ProductUpdate) -> Dict[str, Any]:
        fields = data.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
        product = self.products.update_by_id(product_id, fields)
        if not product:
            raise NotFound("Product not found")
        logger.info("Updated product %s: %s", product_id, ", ".join(sorted(fields)) or "no changes")
        return serialize_doc(product)

    @handles_errors("Error deleting product")
    def delete(self, product_id: str) -> None:
        if not self.products.delete_by_id(product_id):
            raise NotFound("Product not found")
        logger.info("Deleted product %s", product_id)

    @handles_errors("Error adding review")
    def add_review(self, product_id: str, user_id: str, data: ReviewIn) -> Dict[str, Any]:
        obj_id = to_object_id(product_id)
        if obj_id is None or not self.products.find_by_id(obj_id, {"_id": 1}):
            raise NotFound("Product not found")
        review = ReviewSchema(user_id=user_id, rating=data.rating, comment=data.comment)
        # A user has one review per product; update it if it exists
        added = self.products.update(
            {"_id": obj_id, "reviews.userId": {"$ne": user_id}},
            {"$push": {"reviews": review.model_dump(by_alias=True)}},
        )
        if not added:
            self.products.update(
                {"_id": obj_id, "reviews.userId": user_id},
                {"$set": {"reviews.$.rating": review.rating, "reviews.$.comment": review.comment}},
            )
        agg = self.products.aggregate([
            {"$match": {"_id": obj_id}},
            {"$unwind": "$reviews"},
            {"$group": {"_id": "$_id", "avg": {"$avg": "$reviews.rating"}}},
        ])
        rating = round(float(agg[0]["avg"]), 1) if agg else 0.0
        product = self.products.update_by_id(obj_id, {"rating": rating})
        if not product:
            raise NotFound("Product not found")
        return serialize_doc(product)
