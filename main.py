import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth import get_current_user, get_db, get_settings, require_admin
from carts import CartHandler, CartItemIn, CartProductIn
from config import Settings, load_settings
from database import Database
from errors import register_error_handlers
from products import ProductHandler, ProductIn, ProductUpdate, ReviewIn
from users import LoginInput, RegisterInput, TokenResponse, UserHandler
from wishlists import WishlistHandler, WishlistItemIn

logger = logging.getLogger(__name__)


# Handler dependencies

def get_product_handler(db: Database = Depends(get_db)) -> ProductHandler:
    return ProductHandler(db)


def get_cart_handler(db: Database = Depends(get_db)) -> CartHandler:
    return CartHandler(db)


def get_wishlist_handler(db: Database = Depends(get_db)) -> WishlistHandler:
    return WishlistHandler(db)


def get_user_handler(db: Database = Depends(get_db), settings: Settings = Depends(get_settings)) -> UserHandler:
    return UserHandler(db, settings)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.db.ensure_indexes()
        yield
        app.state.db.close()

    app = FastAPI(title="Bookstore API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = database or Database.from_settings(settings)
    logger.info("Bookstore API using database %r", app.state.db.name)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    # Routes
    @app.get("/")
    def read_root():
        return {"message": "Bookstore API"}

    @app.get("/health")
    def health(db: Database = Depends(get_db)):
        return {"backend": "Running", **db.status()}

    # Auth
    @app.post("/auth/register", response_model=TokenResponse, status_code=201)
    def register(payload: RegisterInput, users: UserHandler = Depends(get_user_handler)):
        return users.register(payload)

    @app.post("/auth/login", response_model=TokenResponse)
    def login(payload: LoginInput, users: UserHandler = Depends(get_user_handler)):
        return users.login(payload)

    @app.get("/auth/me")
    def me(current_user: dict = Depends(get_current_user)):
        return current_user

    # Products
    @app.get("/products")
    def list_products(products: ProductHandler = Depends(get_product_handler)):
        return products.list_all()

    @app.get("/products/{product_id}")
    def get_product(product_id: str, products: ProductHandler = Depends(get_product_handler)):
        return products.get(product_id)

    @app.post("/products", status_code=201, dependencies=[Depends(require_admin)])
    def create_product(data: ProductIn, products: ProductHandler = Depends(get_product_handler)):
        product = products.create(data)
        return {"message": "Product created successfully", "product": product}

    @app.put("/products/{product_id}", dependencies=[Depends(require_admin)])
    def update_product(product_id: str, data: ProductUpdate, products: ProductHandler = Depends(get_product_handler)):
        product = products.update(product_id, data)
        return {"message": "Product updated successfully", "product": product}

    @app.delete("/products/{product_id}", dependencies=[Depends(require_admin)])
    def delete_product(product_id: str, products: ProductHandler = Depends(get_product_handler)):
        products.delete(product_id)
        return {"message": "Product deleted successfully"}

    @app.post("/products/{product_id}/reviews", status_code=201)
    def add_review(
        product_id: str,
        data: ReviewIn,
        current_user: dict = Depends(get_current_user),
        products: ProductHandler = Depends(get_product_handler),
    ):
        product = products.add_review(product_id, current_user["id"], data)
        return {"message": "Review added", "product": product}

    # Cart
    @app.get("/cart/{user_id}", dependencies=[Depends(get_current_user)])
    def get_cart(user_id: str, carts: CartHandler = Depends(get_cart_handler)):
        return carts.get(user_id)

    @app.post("/cart/{user_id}/add", status_code=201, dependencies=[Depends(get_current_user)])
    def add_to_cart(user_id: str, item: CartItemIn, carts: CartHandler = Depends(get_cart_handler)):
        cart = carts.add(user_id, item.product_id, item.quantity)
        return {"cart": cart, "message": "Product added to cart"}

    @app.patch("/cart/{user_id}/increase", dependencies=[Depends(get_current_user)])
    def increase_quantity(user_id: str, item: CartProductIn, carts: CartHandler = Depends(get_cart_handler)):
        cart = carts.increase(user_id, item.product_id)
        return {"cart": cart, "message": "Product quantity increased"}

    @app.patch("/cart/{user_id}/decrease", dependencies=[Depends(get_current_user)])
    def decrease_quantity(user_id: str, item: CartProductIn, carts: CartHandler = Depends(get_cart_handler)):
        cart = carts.decrease(user_id, item.product_id)
        return {"cart": cart, "message": "Product quantity decreased"}

    @app.delete("/cart/{user_id}/{product_id}", dependencies=[Depends(get_current_user)])
    def remove_from_cart(user_id: str, product_id: str, carts: CartHandler = Depends(get_cart_handler)):
        cart = carts.remove(user_id, product_id)
        return {"cart": cart, "message": "Product removed from cart"}

    # Wishlist
    @app.get("/wishlist/{user_id}", dependencies=[Depends(get_current_user)])
    def get_wishlist(user_id: str, wishlists: WishlistHandler = Depends(get_wishlist_handler)):
        return wishlists.get(user_id)

    @app.post("/wishlist/{user_id}", status_code=201, dependencies=[Depends(get_current_user)])
    def add_to_wishlist(user_id: str, item: WishlistItemIn, wishlists: WishlistHandler = Depends(get_wishlist_handler)):
        wishlists.add(user_id, item.product_id)
        return {"message": "Product added to wishlist"}

    @app.delete("/wishlist/{user_id}/{product_id}", dependencies=[Depends(get_current_user)])
    def remove_from_wishlist(user_id: str, product_id: str, wishlists: WishlistHandler = Depends(get_wishlist_handler)):
        wishlists.remove(user_id, product_id)
        return {"message": "Product removed from wishlist"}

    return app


if __name__ == "__main__":
    import uvicorn
    settings = load_settings()
    logging.basicConfig(level=settings.log_level)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)
