import logging
import re
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

import config
import geo
from database import create_document, now_utc, paginate, parse_object_id, serialize_doc
from errors import BadInputError, ConflictError, ForbiddenError, NotFoundError
from moderation import VENDOR_TRANSITIONS, check_transition, vendor_status_update
from schemas import LOCATION_VENDOR_TYPES, VendorQuery, VendorUpdate

logger = logging.getLogger(__name__)

LOCATION_FIELDS = ("location_id", "shop_number", "shop_floor", "shop_block")
HOME_FIELDS = ("home_address", "home_state", "home_lga", "home_area")


def _icontains(value: str) -> Dict[str, str]:
    return {"$regex": re.escape(value), "$options": "i"}


def check_patch_fits(vendor_type: str, fields) -> None:
    """Reject fields that belong to another vendor type."""
    foreign = []
    if vendor_type not in LOCATION_VENDOR_TYPES:
        foreign += [f for f in LOCATION_FIELDS if f in fields]
    if vendor_type != "home_based":
        foreign += [f for f in HOME_FIELDS if f in fields]
    if vendor_type == "online_only" and "coordinates" in fields:
        foreign.append("coordinates")
    if foreign:
        raise BadInputError(f"{', '.join(foreign)} not allowed for {vendor_type} vendors")


class VendorService:
    """
    Vendor profiles and their verification lifecycle.

    A user owns at most one vendor profile. Creating one promotes the user to
    the ``vendor`` role and bumps the referenced location's vendor counter;
    removing it reverses both. Those follow-up writes are not transactional
    with the profile write: a failure is logged and surfaced, never rolled back.
    """

    def __init__(self, db, users, locations, strict: bool = config.STRICT_STATUS_TRANSITIONS):
        self.db = db
        self.collection = db["vendor"]
        self.users = users
        self.locations = locations
        self.strict = strict

    def _get_raw(self, vendor_id: str) -> Dict[str, Any]:
        doc = self.collection.find_one({"_id": parse_object_id(vendor_id, "Vendor")})
        if not doc:
            raise NotFoundError("Vendor not found")
        return doc

    def create(self, user_id: str, profile) -> Dict[str, Any]:
        owner = self.users.find_one(user_id)
        if self.collection.find_one({"user_id": user_id}):
            raise ConflictError("Vendor profile already exists")

        data = profile.model_dump(exclude={"coordinates"})
        if profile.vendor_type in LOCATION_VENDOR_TYPES:
            location = self.locations.get_by_id(profile.location_id)
            data["location_id"] = location["id"]
            if location.get("coordinates"):
                data["coordinates"] = location["coordinates"]
        elif getattr(profile, "coordinates", None):
            data["coordinates"] = geo.to_geojson(profile.coordinates.longitude, profile.coordinates.latitude)

        data.update(
            user_id=user_id,
            status="pending",
            total_goods=0,
            rating=0,
            total_reviews=0,
            is_open=True,
        )
        try:
            vendor_id = create_document("vendor", data, database=self.db)
        except DuplicateKeyError:
            raise ConflictError("Vendor profile already exists")
        logger.info(f"Vendor {vendor_id} ({profile.vendor_type}) created for user {user_id}")

        try:
            if owner["role"] != "admin":
                self.users.update_role(user_id, "vendor")
            if data.get("location_id"):
                self.locations.increment_vendor_count(data["location_id"], 1)
        except Exception as e:
            logger.error(f"Vendor {vendor_id} saved but follow-up updates failed: {e}")
            raise

        return self.find_one(vendor_id)

    def find_all(self, filters: VendorQuery, public_only: bool = False) -> Dict[str, Any]:
        query: Dict[str, Any] = {}

        # Public listings only ever expose verified vendors
        if public_only:
            query["status"] = "verified"
        elif filters.status:
            query["status"] = filters.status

        if filters.vendor_type:
            query["vendor_type"] = filters.vendor_type
        if filters.location_id:
            query["location_id"] = filters.location_id
        if filters.state:
            query["home_state"] = _icontains(filters.state)
        if filters.lga:
            query["home_lga"] = _icontains(filters.lga)
        if filters.area:
            query["home_area"] = _icontains(filters.area)
        if filters.search:
            query["$or"] = [
                {"business_name": _icontains(filters.search)},
                {"business_description": _icontains(filters.search)},
            ]
        if filters.category:
            query["categories"] = filters.category
        if filters.is_open is not None:
            query["is_open"] = filters.is_open

        count_query = None
        sort = [("created_at", DESCENDING)]
        if filters.latitude is not None and filters.longitude is not None:
            count_query = dict(query)
            query["coordinates"] = geo.near_query(filters.longitude, filters.latitude, filters.radius_km)
            count_query["coordinates"] = geo.within_query(filters.longitude, filters.latitude, filters.radius_km)
            sort = None

        return paginate(self.collection, query, filters.page, filters.limit, sort=sort, count_query=count_query)

    def count(self, status: Optional[str] = None) -> int:
        return self.collection.count_documents({"status": status} if status else {})

    def find_one(self, vendor_id: str) -> Dict[str, Any]:
        vendor = serialize_doc(self._get_raw(vendor_id))
        if vendor.get("location_id"):
            location = self.locations.collection.find_one({"_id": ObjectId(vendor["location_id"])})
            vendor["location"] = serialize_doc(location)
        return vendor

    def find_by_id_or_none(self, vendor_id: str) -> Optional[Dict[str, Any]]:
        if not ObjectId.is_valid(vendor_id):
            return None
        return serialize_doc(self.collection.find_one({"_id": ObjectId(vendor_id)}))

    def find_by_user_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        return serialize_doc(self.collection.find_one({"user_id": user_id}))

    def find_by_location(self, location_id: str) -> List[Dict[str, Any]]:
        parse_object_id(location_id, "Location")
        cursor = self.collection.find({"location_id": location_id, "status": "verified"})
        return [serialize_doc(d) for d in cursor]

    def find_nearby(self, longitude: float, latitude: float, radius_km: float = config.DEFAULT_RADIUS_KM) -> List[Dict[str, Any]]:
        query = {
            "status": "verified",
            "coordinates": geo.near_query(longitude, latitude, radius_km),
        }
        origin = (longitude, latitude)
        return [geo.with_distance(serialize_doc(d), origin) for d in self.collection.find(query)]

    def update(self, vendor_id: str, caller_id: str, patch: VendorUpdate) -> Dict[str, Any]:
        vendor = self._get_raw(vendor_id)
        if vendor["user_id"] != caller_id:
            logger.warning(f"User {caller_id} tried to update vendor {vendor_id} they do not own")
            raise ForbiddenError("You can only update your own vendor profile")
        check_patch_fits(vendor["vendor_type"], patch.model_dump(exclude_none=True))

        changes = patch.model_dump(exclude_none=True, exclude={"location_id", "coordinates"})
        old_location_id = vendor.get("location_id")
        new_location_id = None
        if patch.location_id:
            location = self.locations.get_by_id(patch.location_id)
            new_location_id = location["id"]
            changes["location_id"] = new_location_id
            if location.get("coordinates"):
                changes["coordinates"] = location["coordinates"]
        if patch.coordinates:
            changes["coordinates"] = geo.to_geojson(patch.coordinates.longitude, patch.coordinates.latitude)
        changes["updated_at"] = now_utc()

        doc = self.collection.find_one_and_update(
            {"_id": vendor["_id"]},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            raise NotFoundError("Vendor not found")

        if new_location_id and new_location_id != old_location_id:
            self.locations.increment_vendor_count(new_location_id, 1)
            if old_location_id:
                self.locations.increment_vendor_count(old_location_id, -1)
            logger.info(f"Vendor {vendor_id} moved from location {old_location_id} to {new_location_id}")

        return self.find_one(vendor_id)

    def update_status(self, vendor_id: str, admin_id: str, status: str, reason: Optional[str] = None) -> Dict[str, Any]:
        oid = parse_object_id(vendor_id, "Vendor")
        selector: Dict[str, Any] = {"_id": oid}
        if self.strict:
            current = self._get_raw(vendor_id)["status"]
            check_transition(VENDOR_TRANSITIONS, current, status, "vendor")
            selector["status"] = current

        doc = self.collection.find_one_and_update(
            selector,
            vendor_status_update(status, admin_id, reason),
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            if self.strict and self.collection.count_documents({"_id": oid}, limit=1):
                raise ConflictError("Vendor status changed concurrently, retry")
            raise NotFoundError("Vendor not found")

        logger.info(f"Vendor {vendor_id} set to {status} by admin {admin_id}")
        return self.find_one(vendor_id)

    def increment_goods_count(self, vendor_id: str, delta: int = 1) -> None:
        self.collection.update_one(
            {"_id": parse_object_id(vendor_id, "Vendor")},
            {"$inc": {"total_goods": delta}},
        )

    def categories(self) -> List[str]:
        return sorted(self.collection.distinct("categories", {"status": "verified"}))

    def remove(self, vendor_id: str, caller_id: str) -> None:
        vendor = self._get_raw(vendor_id)
        if vendor["user_id"] != caller_id:
            logger.warning(f"User {caller_id} tried to delete vendor {vendor_id} they do not own")
            raise ForbiddenError("You can only delete your own vendor profile")

        self.collection.delete_one({"_id": vendor["_id"]})
        logger.info(f"Vendor {vendor_id} deleted by owner {caller_id}")

        try:
            if vendor.get("location_id"):
                self.locations.increment_vendor_count(vendor["location_id"], -1)
            if self.users.find_one(caller_id)["role"] != "admin":
                self.users.update_role(caller_id, "user")
        except Exception as e:
            logger.error(f"Vendor {vendor_id} deleted but follow-up updates failed: {e}")
            raise
