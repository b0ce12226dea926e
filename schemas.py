"""
Database Schemas

MongoDB collection schemas for the bookstore, as Pydantic models.
Model name lowercased is the collection name. Documents are stored with
the camelCase aliases, which are also the field names of the JSON API.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class User(Document):
    name: str = Field(..., description="Full name")
    email: EmailStr = Field(..., description="Email address")
    password_hash: str = Field(..., alias="passwordHash", description="BCrypt hashed password")
    role: str = Field(ROLE_USER, description="Role: user | admin")


class Review(Document):
    user_id: str = Field(..., alias="userId")
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), alias="createdAt")


class Product(Document):
    title: str
    author: str
    description: str
    cover_image: str = Field(..., alias="coverImage", description="URL of the cover image")
    price: float = Field(..., ge=0)
    rating: float = Field(default=0, ge=0, le=5)
    genre: str
    stock: int = Field(..., ge=0)
    reviews: List[Review] = Field(default_factory=list)


class CartItem(Document):
    product_id: str = Field(..., alias="productId")
    quantity: int = Field(1, ge=1)


class Cart(Document):
    user_id: str = Field(..., alias="userId")
    products: List[CartItem] = Field(default_factory=list)


class WishlistItem(Document):
    product_id: str = Field(..., alias="productId")


class Wishlist(Document):
    user_id: str = Field(..., alias="userId")
    products: List[WishlistItem] = Field(default_factory=list)
