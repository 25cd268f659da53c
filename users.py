import logging
from typing import Any, Dict, Optional

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

import config
from auth import hash_password, verify_password
from database import create_document, now_utc, paginate, parse_object_id, serialize_doc
from errors import BadInputError, ConflictError, NotFoundError
from schemas import User, UserCreate

logger = logging.getLogger(__name__)


class UserService:
    """Accounts and the role field other services promote or demote."""

    def __init__(self, db):
        self.db = db
        self.collection = db["user"]

    def create(self, payload: UserCreate, role: str = "user") -> Dict[str, Any]:
        email = payload.email.lower()
        if self.collection.find_one({"email": email}):
            raise ConflictError("Email already registered")

        user = User(
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=email,
            password_hash=hash_password(payload.password),
            phone=payload.phone,
            role=role,
        )
        try:
            user_id = create_document("user", user, database=self.db)
        except DuplicateKeyError:
            raise ConflictError("Email already registered")

        logger.info(f"User {user_id} registered with role {role}")
        return self.find_one(user_id)

    def find_all(self, page: int = config.DEFAULT_PAGE, limit: int = config.DEFAULT_LIMIT, role: Optional[str] = None) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if role:
            query["role"] = role
        return paginate(self.collection, query, page, limit, sort=[("created_at", DESCENDING)])

    def count(self) -> int:
        return self.collection.count_documents({})

    def find_one(self, user_id: str) -> Dict[str, Any]:
        doc = self.collection.find_one({"_id": parse_object_id(user_id, "User")})
        if not doc:
            raise NotFoundError("User not found")
        return serialize_doc(doc)

    def find_by_id_or_none(self, user_id: Optional[str]) -> Optional[Dict[str, Any]]:
        if not user_id or not ObjectId.is_valid(user_id):
            return None
        return serialize_doc(self.collection.find_one({"_id": ObjectId(user_id)}))

    def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Raw document, password hash included; never return it to callers."""
        return self.collection.find_one({"email": email.lower()})

    def _update(self, user_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        changes["updated_at"] = now_utc()
        doc = self.collection.find_one_and_update(
            {"_id": parse_object_id(user_id, "User")},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFoundError("User not found")
        return serialize_doc(doc)

    def update(self, user_id: str, patch) -> Dict[str, Any]:
        changes = patch.model_dump(exclude_none=True)
        if not changes:
            return self.find_one(user_id)
        return self._update(user_id, changes)

    def update_password(self, user_id: str, current_password: str, new_password: str) -> None:
        doc = self.collection.find_one({"_id": parse_object_id(user_id, "User")})
        if not doc:
            raise NotFoundError("User not found")
        if not doc.get("password_hash"):
            raise BadInputError("User password is not set")
        if not verify_password(current_password, doc["password_hash"]):
            raise BadInputError("Current password is incorrect")
        self._update(user_id, {"password_hash": hash_password(new_password)})

    def update_role(self, user_id: str, role: str) -> Dict[str, Any]:
        user = self._update(user_id, {"role": role})
        logger.info(f"User {user_id} role set to {role}")
        return user

    def update_last_login(self, user_id: str) -> None:
        self.collection.update_one(
            {"_id": parse_object_id(user_id, "User")},
            {"$set": {"last_login": now_utc()}},
        )

    def validate_password(self, user: Dict[str, Any], password: str) -> bool:
        if not user.get("password_hash"):
            raise BadInputError("User password is not set")
        return verify_password(password, user["password_hash"])

    def remove(self, user_id: str) -> None:
        result = self.collection.delete_one({"_id": parse_object_id(user_id, "User")})
        if result.deleted_count == 0:
            raise NotFoundError("User not found")
        logger.info(f"User {user_id} removed")

    def seed_admin(self) -> bool:
        """Create the configured admin account unless it already exists."""
        if self.find_by_email(config.ADMIN_EMAIL):
            return False
        payload = UserCreate(
            first_name=config.ADMIN_FIRST_NAME,
            last_name=config.ADMIN_LAST_NAME,
            email=config.ADMIN_EMAIL,
            password=config.ADMIN_PASSWORD,
        )
        self.create(payload, role="admin")
        logger.info(f"Admin account {config.ADMIN_EMAIL} created")
        return True
