import logging
import re
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING, ReturnDocument

import config
from database import create_document, now_utc, paginate, parse_object_id, serialize_doc
from errors import ConflictError, ForbiddenError, NotFoundError
from moderation import GOODS_TRANSITIONS, check_transition, goods_status_update
from schemas import GoodsCreate, GoodsQuery, GoodsUpdate

logger = logging.getLogger(__name__)


def _icontains(value: str) -> Dict[str, str]:
    return {"$regex": re.escape(value), "$options": "i"}


class GoodsService:
    """Listings owned by verified vendors, moderated by admins."""

    def __init__(self, db, vendors, strict: bool = config.STRICT_STATUS_TRANSITIONS):
        self.db = db
        self.collection = db["goods"]
        self.vendors = vendors
        self.strict = strict

    def _get_raw(self, goods_id: str) -> Dict[str, Any]:
        doc = self.collection.find_one({"_id": parse_object_id(goods_id, "Goods")})
        if not doc:
            raise NotFoundError("Goods not found")
        return doc

    def create(self, user_id: str, listing: GoodsCreate) -> Dict[str, Any]:
        vendor = self.vendors.find_by_user_id(user_id)
        if not vendor:
            raise ForbiddenError("You must be a vendor to create goods")
        if vendor["status"] != "verified":
            raise ForbiddenError("Your vendor profile must be verified to create goods")

        data = listing.model_dump()
        data.update(
            vendor_id=vendor["id"],
            created_by=user_id,
            status="pending",
            views=0,
            is_available=True,
        )
        goods_id = create_document("goods", data, database=self.db)
        logger.info(f"Goods {goods_id} created by user {user_id} under vendor {vendor['id']}")

        try:
            self.vendors.increment_goods_count(vendor["id"], 1)
        except Exception as e:
            logger.error(f"Goods {goods_id} saved but vendor counter update failed: {e}")
            raise

        return serialize_doc(self._get_raw(goods_id))

    def build_query(self, filters: GoodsQuery, public_only: bool = False) -> Dict[str, Any]:
        query: Dict[str, Any] = {}

        # Public listings never show unapproved or withdrawn goods
        if public_only:
            query["status"] = "approved"
            query["is_available"] = True
        elif filters.status:
            query["status"] = filters.status

        if filters.type:
            query["type"] = filters.type
        if filters.category:
            query["category"] = filters.category
        if filters.search:
            query["$or"] = [
                {"title": _icontains(filters.search)},
                {"description": _icontains(filters.search)},
                {"tags": _icontains(filters.search)},
            ]
        if filters.min_price is not None or filters.max_price is not None:
            price: Dict[str, float] = {}
            if filters.min_price is not None:
                price["$gte"] = filters.min_price
            if filters.max_price is not None:
                price["$lte"] = filters.max_price
            query["price"] = price
        if filters.vendor_id:
            query["vendor_id"] = filters.vendor_id
        if filters.condition:
            query["condition"] = filters.condition
        if filters.brand:
            query["brand"] = _icontains(filters.brand)
        return query

    def find_all(self, filters: GoodsQuery, public_only: bool = False) -> Dict[str, Any]:
        query = self.build_query(filters, public_only)
        direction = ASCENDING if filters.sort_order == "asc" else DESCENDING
        return paginate(self.collection, query, filters.page, filters.limit, sort=[(filters.sort_by, direction)])

    def count(self, status: Optional[str] = None) -> int:
        return self.collection.count_documents({"status": status} if status else {})

    def find_one(self, goods_id: str, increment_views: bool = False) -> Dict[str, Any]:
        oid = parse_object_id(goods_id, "Goods")
        if increment_views:
            doc = self.collection.find_one_and_update(
                {"_id": oid},
                {"$inc": {"views": 1}},
                return_document=ReturnDocument.AFTER,
            )
        else:
            doc = self.collection.find_one({"_id": oid})
        if not doc:
            raise NotFoundError("Goods not found")

        goods = serialize_doc(doc)
        vendor = self.vendors.find_by_id_or_none(goods["vendor_id"])
        goods["vendor"] = vendor
        # account summaries, password hash never included
        users = self.vendors.users
        goods["creator"] = users.find_by_id_or_none(goods.get("created_by"))
        goods["approver"] = users.find_by_id_or_none(goods.get("approved_by"))
        goods["flagger"] = users.find_by_id_or_none(goods.get("flagged_by"))
        return goods

    def find_by_vendor(self, vendor_id: str, filters: GoodsQuery) -> Dict[str, Any]:
        parse_object_id(vendor_id, "Vendor")
        return self.find_all(filters.model_copy(update={"vendor_id": vendor_id}), public_only=False)

    def find_mine(self, user_id: str, filters: GoodsQuery) -> Dict[str, Any]:
        vendor = self.vendors.find_by_user_id(user_id)
        if not vendor:
            raise NotFoundError("Vendor profile not found")
        return self.find_by_vendor(vendor["id"], filters)

    def update(self, goods_id: str, caller_id: str, patch: GoodsUpdate) -> Dict[str, Any]:
        goods = self._get_raw(goods_id)
        if goods["created_by"] != caller_id:
            logger.warning(f"User {caller_id} tried to update goods {goods_id} they did not create")
            raise ForbiddenError("You can only update your own goods")

        changes = patch.model_dump(exclude_none=True)
        changes["updated_at"] = now_utc()
        doc = self.collection.find_one_and_update(
            {"_id": goods["_id"]},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFoundError("Goods not found")
        return serialize_doc(doc)

    def update_status(self, goods_id: str, admin_id: str, status: str, reason: Optional[str] = None) -> Dict[str, Any]:
        oid = parse_object_id(goods_id, "Goods")
        selector: Dict[str, Any] = {"_id": oid}
        if self.strict:
            current = self._get_raw(goods_id)["status"]
            check_transition(GOODS_TRANSITIONS, current, status, "goods")
            selector["status"] = current

        doc = self.collection.find_one_and_update(
            selector,
            goods_status_update(status, admin_id, reason),
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            if self.strict and self.collection.count_documents({"_id": oid}, limit=1):
                raise ConflictError("Goods status changed concurrently, retry")
            raise NotFoundError("Goods not found")

        logger.info(f"Goods {goods_id} set to {status} by admin {admin_id}")
        return serialize_doc(doc)

    def remove(self, goods_id: str, caller_id: str, is_admin: bool = False) -> None:
        goods = self._get_raw(goods_id)
        if not is_admin and goods["created_by"] != caller_id:
            logger.warning(f"User {caller_id} tried to delete goods {goods_id} they did not create")
            raise ForbiddenError("You can only delete your own goods")

        self.collection.delete_one({"_id": goods["_id"]})
        logger.info(f"Goods {goods_id} deleted by {caller_id}")
        try:
            self.vendors.increment_goods_count(goods["vendor_id"], -1)
        except Exception as e:
            logger.error(f"Goods {goods_id} deleted but vendor counter update failed: {e}")
            raise

    def categories(self) -> List[str]:
        return sorted(c for c in self.collection.distinct("category", {"status": "approved"}) if c)

    def get_stats(self) -> Dict[str, int]:
        return {
            "total": self.count(),
            "pending": self.count("pending"),
            "approved": self.count("approved"),
            "flagged": self.count("flagged"),
            "dropped": self.count("dropped"),
        }
