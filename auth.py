import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, Header, Request
from jose import JWTError, jwt
from passlib.context import CryptContext

from config import Settings
from database import Database, serialize_doc
from errors import Forbidden, Unauthorized
from schemas import ROLE_ADMIN

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> dict:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.warning("Rejected token: %s", e)
        raise Unauthorized("Token is not valid")


# Dependencies

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
    db: Database = Depends(get_db),
) -> Dict[str, Any]:
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthorized("No token, authorization denied")
    token = authorization.split(" ", 1)[1].strip()
    payload = decode_token(token, settings)
    user_id = payload.get("sub")
    if not user_id:
        raise Unauthorized("Token is not valid")
    user = db.users.find_by_id(user_id, {"passwordHash": 0})
    if not user:
        logger.warning("Token subject %s does not match any user", user_id)
        raise Unauthorized("User not found")
    return serialize_doc(user)


def require_admin(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if current_user.get("role") != ROLE_ADMIN:
        raise Forbidden("Access denied: insufficient permissions")
    return current_user
