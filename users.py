import logging
from typing import Any, Dict

from pydantic import BaseModel, EmailStr

from auth import create_access_token, hash_password, verify_password
from config import Settings
from database import Database, serialize_doc
from errors import DuplicateError, ValidationError, handles_errors
from schemas import User as UserSchema

logger = logging.getLogger(__name__)


class RegisterInput(BaseModel):
    name: str
    email: EmailStr
    password: str


class LoginInput(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: Dict[str, Any]


def _public(user: Dict[str, Any]) -> Dict[str, Any]:
    user = serialize_doc(user)
    # Never send password hash
    user.pop("passwordHash", None)
    return user


class UserHandler:
    def __init__(self, db: Database, settings: Settings):
        self.users = db.users
        self.settings = settings

    def _token_for(self, user: Dict[str, Any]) -> TokenResponse:
        token = create_access_token({"sub": str(user["_id"])}, self.settings)
        return TokenResponse(access_token=token, user=_public(user))

    @handles_errors("Error registering user")
    def register(self, payload: RegisterInput) -> TokenResponse:
        email = payload.email.lower()
        if self.users.find_one({"email": email}):
            raise DuplicateError("Email already registered")
        user_model = UserSchema(
            name=payload.name,
            email=email,
            password_hash=hash_password(payload.password),
        )
        user = self.users.create(user_model.model_dump(by_alias=True))
        logger.info("Registered user %s", user["_id"])
        return self._token_for(user)

    @handles_errors("Error logging in")
    def login(self, payload: LoginInput) -> TokenResponse:
        user = self.users.find_one({"email": payload.email.lower()})
        if not user or not user.get("passwordHash") or not verify_password(payload.password, user["passwordHash"]):
            raise ValidationError("Invalid email or password")
        return self._token_for(user)
