import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

import config
from errors import UnauthorizedError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def create_access_token(user: Dict[str, Any]) -> str:
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user.get("id") or user["_id"]),
        "email": user.get("email"),
        "role": user.get("role", "user"),
        "exp": exp,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGO)


def decode_access_token(token: str) -> Optional[str]:
    """Return the subject of a valid token, None otherwise."""
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGO])
    except jwt.PyJWTError:
        return None
    return payload.get("sub")


class AuthService:
    def __init__(self, users):
        self.users = users

    def register(self, payload) -> Dict[str, Any]:
        user = self.users.create(payload)
        return {"access_token": create_access_token(user), "token_type": "bearer", "user": user}

    def login(self, email: str, password: str) -> Dict[str, Any]:
        user = self.users.find_by_email(email)
        if not user or not self.users.validate_password(user, password):
            raise UnauthorizedError("Invalid credentials")
        if not user.get("is_active", True):
            raise UnauthorizedError("Account is deactivated")

        user_id = str(user["_id"])
        self.users.update_last_login(user_id)
        logger.info(f"User {user_id} logged in")
        user = self.users.find_one(user_id)
        return {"access_token": create_access_token(user), "token_type": "bearer", "user": user}
