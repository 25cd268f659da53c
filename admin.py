import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict

import config
from database import check_pagination, now_utc
from schemas import GoodsQuery, VendorQuery

logger = logging.getLogger(__name__)


class ModerationService:
    """
    Admin-facing facade over the user, vendor, goods and location services.

    Moderation actions delegate to the lifecycle services' status transitions
    with a fixed target status and the acting admin's id.
    """

    def __init__(self, users, vendors, goods, locations):
        self.users = users
        self.vendors = vendors
        self.goods = goods
        self.locations = locations

    def dashboard_stats(self) -> Dict[str, Any]:
        # independent reads, not a point-in-time snapshot
        with ThreadPoolExecutor(max_workers=5) as pool:
            users_total = pool.submit(self.users.count)
            vendors_total = pool.submit(self.vendors.count)
            vendors_pending = pool.submit(self.vendors.count, "pending")
            goods_stats = pool.submit(self.goods.get_stats)
            by_state = pool.submit(self.locations.stats_by_state)

            return {
                "users": {"total": users_total.result()},
                "vendors": {"total": vendors_total.result(), "pending": vendors_pending.result()},
                "goods": goods_stats.result(),
                "locations": {"by_state": by_state.result()},
            }

    # Vendors
    def verify_vendor(self, vendor_id: str, admin_id: str) -> Dict[str, Any]:
        return self.vendors.update_status(vendor_id, admin_id, "verified")

    def reject_vendor(self, vendor_id: str, admin_id: str, reason: str) -> Dict[str, Any]:
        return self.vendors.update_status(vendor_id, admin_id, "rejected", reason)

    def suspend_vendor(self, vendor_id: str, admin_id: str, reason: str) -> Dict[str, Any]:
        return self.vendors.update_status(vendor_id, admin_id, "suspended", reason)

    def pending_vendors(self, page: int = config.DEFAULT_PAGE, limit: int = config.DEFAULT_LIMIT) -> Dict[str, Any]:
        check_pagination(page, limit)
        return self.vendors.find_all(VendorQuery(page=page, limit=limit, status="pending"), public_only=False)

    # Goods
    def approve_goods(self, goods_id: str, admin_id: str) -> Dict[str, Any]:
        return self.goods.update_status(goods_id, admin_id, "approved")

    def flag_goods(self, goods_id: str, admin_id: str, reason: str) -> Dict[str, Any]:
        return self.goods.update_status(goods_id, admin_id, "flagged", reason)

    def drop_goods(self, goods_id: str, admin_id: str, reason: str) -> Dict[str, Any]:
        return self.goods.update_status(goods_id, admin_id, "dropped", reason)

    def pending_goods(self, page: int = config.DEFAULT_PAGE, limit: int = config.DEFAULT_LIMIT) -> Dict[str, Any]:
        check_pagination(page, limit)
        return self.goods.find_all(GoodsQuery(page=page, limit=limit, status="pending"), public_only=False)

    def reconcile_counters(self) -> Dict[str, int]:
        """Rewrite drifted ``total_vendors`` and ``total_goods`` counters.

        Counts are recomputed from the vendor and goods collections. Returns
        how many location and vendor documents were corrected.
        """
        vendors_per_location = self._group_counts(self.vendors.collection, "location_id")
        fixed_locations = self._rewrite_counters(self.locations.collection, "total_vendors", vendors_per_location)

        goods_per_vendor = self._group_counts(self.goods.collection, "vendor_id")
        fixed_vendors = self._rewrite_counters(self.vendors.collection, "total_goods", goods_per_vendor)

        logger.info(f"Counter reconciliation fixed {fixed_locations} locations and {fixed_vendors} vendors")
        return {"locations": fixed_locations, "vendors": fixed_vendors}

    @staticmethod
    def _group_counts(collection, field: str) -> Dict[str, int]:
        pipeline = [
            {"$match": {field: {"$ne": None}}},
            {"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
        ]
        return {row["_id"]: row["count"] for row in collection.aggregate(pipeline)}

    @staticmethod
    def _rewrite_counters(collection, counter: str, expected: Dict[str, int]) -> int:
        fixed = 0
        for doc in collection.find({}, {counter: 1}):
            actual = expected.get(str(doc["_id"]), 0)
            if doc.get(counter, 0) != actual:
                collection.update_one({"_id": doc["_id"]}, {"$set": {counter: actual, "updated_at": now_utc()}})
                fixed += 1
        return fixed
