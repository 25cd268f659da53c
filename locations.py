import logging
import re
import threading
from typing import Any, Dict, List

from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import BulkWriteError, DuplicateKeyError

import config
import geo
from database import create_document, now_utc, paginate, parse_object_id, serialize_doc
from errors import ConflictError, NotFoundError
from schemas import LocationCreate, LocationQuery, LocationUpdate
from seed_data import LOCATIONS

logger = logging.getLogger(__name__)

_seed_lock = threading.Lock()


def _icontains(value: str) -> Dict[str, str]:
    return {"$regex": re.escape(value), "$options": "i"}


class LocationService:
    """Registry of named places vendors attach to."""

    def __init__(self, db):
        self.db = db
        self.collection = db["location"]

    def seed(self) -> int:
        """Insert the reference locations into an empty collection.

        Returns the number of records inserted; 0 when anything already exists.
        The process lock stops two threads seeding at once; across worker
        processes the unique (name, state) index turns a lost race into
        duplicate-key errors, which are skipped.
        """
        with _seed_lock:
            if self.collection.count_documents({}, limit=1):
                return 0
            logger.info("Seeding locations...")
            stamp = now_utc()
            docs = []
            for location in LOCATIONS:
                lng, lat = location["coordinates"]
                doc = dict(location)
                doc.update(
                    coordinates=geo.to_geojson(lng, lat),
                    is_active=True,
                    images=[],
                    total_vendors=0,
                    created_at=stamp,
                    updated_at=stamp,
                )
                docs.append(doc)
            try:
                inserted = len(self.collection.insert_many(docs, ordered=False).inserted_ids)
            except BulkWriteError as e:
                inserted = e.details.get("nInserted", 0)
                logger.warning(f"Location seed raced another worker, {len(docs) - inserted} already present")
            logger.info(f"Seeded {inserted} locations")
            return inserted

    def create(self, payload: LocationCreate) -> Dict[str, Any]:
        data = payload.model_dump(exclude={"coordinates"})
        if payload.coordinates:
            data["coordinates"] = geo.to_geojson(payload.coordinates.longitude, payload.coordinates.latitude)
        data["is_active"] = True
        data["total_vendors"] = 0
        try:
            location_id = create_document("location", data, database=self.db)
        except DuplicateKeyError:
            raise ConflictError(f"Location {payload.name} already exists in {payload.state}")
        logger.info(f"Location {location_id} created: {payload.name}")
        return self.get_by_id(location_id)

    def list(self, filters: LocationQuery) -> Dict[str, Any]:
        query: Dict[str, Any] = {"is_active": True}
        if filters.type:
            query["type"] = filters.type
        if filters.state:
            query["state"] = _icontains(filters.state)
        if filters.lga:
            query["lga"] = _icontains(filters.lga)
        if filters.area:
            query["area"] = _icontains(filters.area)
        if filters.search:
            query["$or"] = [
                {"name": _icontains(filters.search)},
                {"area": _icontains(filters.search)},
                {"address": _icontains(filters.search)},
            ]

        count_query = None
        sort = [("name", ASCENDING)]
        if filters.latitude is not None and filters.longitude is not None:
            count_query = dict(query)
            query["coordinates"] = geo.near_query(filters.longitude, filters.latitude, filters.radius_km)
            count_query["coordinates"] = geo.within_query(filters.longitude, filters.latitude, filters.radius_km)
            # $near already orders by distance
            sort = None

        return paginate(self.collection, query, filters.page, filters.limit, sort=sort, count_query=count_query)

    def get_by_id(self, location_id: str) -> Dict[str, Any]:
        doc = self.collection.find_one({"_id": parse_object_id(location_id, "Location")})
        if not doc:
            raise NotFoundError("Location not found")
        return serialize_doc(doc)

    def find_by_state(self, state: str) -> List[Dict[str, Any]]:
        cursor = self.collection.find({"state": _icontains(state), "is_active": True}).sort("name", ASCENDING)
        return [serialize_doc(d) for d in cursor]

    def find_nearby(self, longitude: float, latitude: float, radius_km: float = config.DEFAULT_RADIUS_KM) -> List[Dict[str, Any]]:
        query = {
            "coordinates": geo.near_query(longitude, latitude, radius_km),
            "is_active": True,
        }
        origin = (longitude, latitude)
        return [geo.with_distance(serialize_doc(d), origin) for d in self.collection.find(query)]

    def update(self, location_id: str, patch: LocationUpdate) -> Dict[str, Any]:
        changes = patch.model_dump(exclude_none=True, exclude={"coordinates"})
        if patch.coordinates:
            changes["coordinates"] = geo.to_geojson(patch.coordinates.longitude, patch.coordinates.latitude)
        changes["updated_at"] = now_utc()

        try:
            doc = self.collection.find_one_and_update(
                {"_id": parse_object_id(location_id, "Location")},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise ConflictError("Another location already has that name in this state")
        if not doc:
            raise NotFoundError("Location not found")
        return serialize_doc(doc)

    def delete(self, location_id: str) -> None:
        result = self.collection.delete_one({"_id": parse_object_id(location_id, "Location"), "is_active": True})
        if result.deleted_count == 0:
            raise NotFoundError("Location not found")
        logger.info(f"Location {location_id} deleted")

    def list_states(self) -> List[str]:
        return geo.state_names()

    def stats_by_state(self) -> List[Dict[str, Any]]:
        pipeline = [
            {"$match": {"is_active": True}},
            {"$group": {"_id": "$state", "count": {"$sum": 1}}},
            {"$project": {"state": "$_id", "count": 1, "_id": 0}},
            {"$sort": {"state": 1}},
        ]
        return list(self.collection.aggregate(pipeline))

    def increment_vendor_count(self, location_id: str, delta: int = 1) -> None:
        self.collection.update_one(
            {"_id": parse_object_id(location_id, "Location")},
            {"$inc": {"total_vendors": delta}},
        )
