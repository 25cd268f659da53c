from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError

from errors import BadInputError, ConflictError, ForbiddenError, NotFoundError
from schemas import VendorQuery, VendorUpdate
from vendors import VendorService


@pytest.mark.unit
class TestVendorCreate:
    def test_online_only_vendor(self, make_user, users, vendors, vendor_profile):
        owner = make_user()

        vendor = vendors.create(owner["id"], vendor_profile())

        assert vendor["status"] == "pending"
        assert vendor["user_id"] == owner["id"]
        assert vendor["total_goods"] == 0
        assert vendor["is_open"] is True
        assert vendor.get("location_id") is None
        assert users.find_one(owner["id"])["role"] == "vendor"

    def test_second_profile_conflicts(self, make_user, vendors, vendor_profile):
        owner = make_user()
        vendors.create(owner["id"], vendor_profile())

        with pytest.raises(ConflictError):
            vendors.create(owner["id"], vendor_profile(business_name="Second shop"))

    def test_unknown_user(self, vendors, vendor_profile):
        with pytest.raises(NotFoundError):
            vendors.create("64b7f0c2a1b2c3d4e5f60718", vendor_profile())

    def test_home_based_requires_home_fields(self, vendor_profile):
        with pytest.raises(ValidationError):
            vendor_profile("home_based", home_address="12 Allen Avenue", home_state="Lagos")

    def test_location_vendor_requires_location_id(self, vendor_profile):
        with pytest.raises(ValidationError):
            vendor_profile("market")

    def test_home_based_vendor_with_coordinates(self, make_user, vendors, vendor_profile):
        owner = make_user()
        profile = vendor_profile(
            "home_based",
            home_address="12 Allen Avenue",
            home_state="Lagos",
            home_lga="Ikeja",
            home_area="Allen",
            coordinates={"longitude": 3.35, "latitude": 6.60},
        )

        vendor = vendors.create(owner["id"], profile)

        assert vendor["home_state"] == "Lagos"
        assert vendor["coordinates"] == {"type": "Point", "coordinates": [3.35, 6.60]}

    def test_market_vendor_takes_location_point_and_counter(self, make_user, make_location, vendors, locations, vendor_profile):
        location = make_location()
        owner = make_user()

        vendor = vendors.create(owner["id"], vendor_profile("market", location_id=location["id"], shop_number="B12"))

        assert vendor["location_id"] == location["id"]
        assert vendor["coordinates"] == location["coordinates"]
        assert vendor["location"]["name"] == "Balogun Market"
        assert locations.get_by_id(location["id"])["total_vendors"] == 1

    def test_market_vendor_with_unknown_location(self, make_user, vendors, vendor_profile, db):
        owner = make_user()

        with pytest.raises(NotFoundError):
            vendors.create(owner["id"], vendor_profile("mall", location_id="64b7f0c2a1b2c3d4e5f60718"))
        assert db["vendor"].count_documents({}) == 0

    def test_admin_keeps_role(self, admin_user, users, vendors, vendor_profile):
        vendors.create(admin_user["id"], vendor_profile())
        assert users.find_one(admin_user["id"])["role"] == "admin"

    def test_follow_up_failure_is_surfaced(self, make_user, vendors, vendor_profile, db):
        owner = make_user()

        with patch.object(vendors.users, "update_role", side_effect=RuntimeError("store down")):
            with pytest.raises(RuntimeError):
                vendors.create(owner["id"], vendor_profile())
        # the profile write itself is not rolled back
        assert db["vendor"].count_documents({"user_id": owner["id"]}) == 1


@pytest.mark.unit
class TestVendorQueries:
    @pytest.fixture
    def catalogue(self, make_user, vendors, vendor_profile, admin_user):
        created = {}
        for name, status in [("Ada Fabrics", "verified"), ("Bola Phones", "pending"), ("Chi Foods", "rejected")]:
            owner = make_user()
            vendor = vendors.create(owner["id"], vendor_profile(business_name=name, categories=[name.split()[1].lower()]))
            if status != "pending":
                vendor = vendors.update_status(vendor["id"], admin_user["id"], status, "bad documents")
            created[name] = vendor
        return created

    def test_public_listing_only_shows_verified(self, catalogue, vendors):
        for status in (None, "pending", "rejected", "suspended"):
            result = vendors.find_all(VendorQuery(status=status), public_only=True)
            assert [v["business_name"] for v in result["items"]] == ["Ada Fabrics"]

    def test_admin_listing_filters_by_status(self, catalogue, vendors):
        assert vendors.find_all(VendorQuery(), public_only=False)["total"] == 3
        pending = vendors.find_all(VendorQuery(status="pending"), public_only=False)
        assert [v["business_name"] for v in pending["items"]] == ["Bola Phones"]

    def test_search_is_case_insensitive(self, catalogue, vendors):
        result = vendors.find_all(VendorQuery(search="PHONES"), public_only=False)
        assert result["total"] == 1

    def test_category_filter(self, catalogue, vendors):
        result = vendors.find_all(VendorQuery(category="foods"), public_only=False)
        assert [v["business_name"] for v in result["items"]] == ["Chi Foods"]

    def test_categories_of_verified_vendors(self, catalogue, vendors):
        assert vendors.categories() == ["fabrics"]

    def test_count(self, catalogue, vendors):
        assert vendors.count() == 3
        assert vendors.count("pending") == 1

    def test_find_by_user_id(self, catalogue, vendors):
        vendor = catalogue["Ada Fabrics"]
        assert vendors.find_by_user_id(vendor["user_id"])["id"] == vendor["id"]
        assert vendors.find_by_user_id("nobody") is None

    def test_find_by_location_verified_only(self, make_user, make_location, vendors, vendor_profile, admin_user):
        location = make_location()
        for name in ("Shop A", "Shop B"):
            owner = make_user()
            vendor = vendors.create(owner["id"], vendor_profile("market", location_id=location["id"], business_name=name))
        vendors.update_status(vendor["id"], admin_user["id"], "verified")

        assert [v["business_name"] for v in vendors.find_by_location(location["id"])] == ["Shop B"]
        with pytest.raises(NotFoundError):
            vendors.find_by_location("bad-id")

    def test_limit_above_maximum_is_rejected(self, vendors):
        with pytest.raises(BadInputError):
            vendors.find_all(VendorQuery.model_construct(page=1, limit=101, radius_km=10), public_only=True)


@pytest.mark.unit
class TestVendorUpdate:
    def test_owner_can_update(self, make_user, vendors, vendor_profile):
        owner = make_user()
        vendor = vendors.create(owner["id"], vendor_profile())

        updated = vendors.update(vendor["id"], owner["id"], VendorUpdate(business_name="Ada Prints", is_open=False))

        assert updated["business_name"] == "Ada Prints"
        assert updated["is_open"] is False
        assert updated["status"] == "pending"

    def test_non_owner_is_forbidden(self, make_user, vendors, vendor_profile):
        owner = make_user()
        vendor = vendors.create(owner["id"], vendor_profile())
        intruder = make_user()

        with pytest.raises(ForbiddenError):
            vendors.update(vendor["id"], intruder["id"], VendorUpdate(business_name="Mine now"))

    def test_relocation_moves_counter_and_point(self, make_user, make_location, vendors, locations, vendor_profile):
        old = make_location(name="Balogun Market")
        new = make_location(name="Wuse Market", state="Abuja", coordinates={"longitude": 7.471, "latitude": 9.068})
        owner = make_user()
        vendor = vendors.create(owner["id"], vendor_profile("market", location_id=old["id"]))

        moved = vendors.update(vendor["id"], owner["id"], VendorUpdate(location_id=new["id"]))

        assert moved["location_id"] == new["id"]
        assert moved["coordinates"]["coordinates"] == [7.471, 9.068]
        assert locations.get_by_id(old["id"])["total_vendors"] == 0
        assert locations.get_by_id(new["id"])["total_vendors"] == 1

    def test_relocation_to_unknown_location(self, make_user, make_location, vendors, vendor_profile):
        owner = make_user()
        vendor = vendors.create(owner["id"], vendor_profile("market", location_id=make_location()["id"]))

        with pytest.raises(NotFoundError):
            vendors.update(vendor["id"], owner["id"], VendorUpdate(location_id="64b7f0c2a1b2c3d4e5f60718"))

    def test_status_is_not_patchable(self):
        assert "status" not in VendorUpdate.model_fields
        assert "total_goods" not in VendorUpdate.model_fields
        assert "vendor_type" not in VendorUpdate.model_fields


HOME = {"home_address": "12 Allen Avenue", "home_state": "Lagos", "home_lga": "Ikeja", "home_area": "Allen"}


@pytest.mark.unit
class TestVendorUpdateVariants:
    def test_online_vendor_cannot_take_a_location(self, make_user, make_location, vendors, locations, vendor_profile):
        location = make_location()
        owner = make_user()
        vendor = vendors.create(owner["id"], vendor_profile())

        with pytest.raises(BadInputError, match="location_id"):
            vendors.update(vendor["id"], owner["id"], VendorUpdate(location_id=location["id"]))

        assert locations.get_by_id(location["id"])["total_vendors"] == 0
        assert "location_id" not in vendors.find_one(vendor["id"])

    def test_online_vendor_cannot_take_coordinates(self, make_user, vendors, vendor_profile):
        owner = make_user()
        vendor = vendors.create(owner["id"], vendor_profile())

        with pytest.raises(BadInputError, match="coordinates"):
            vendors.update(vendor["id"], owner["id"], VendorUpdate(coordinates={"longitude": 3.35, "latitude": 6.6}))

    def test_market_vendor_cannot_take_home_fields(self, make_user, make_location, vendors, vendor_profile):
        owner = make_user()
        vendor = vendors.create(owner["id"], vendor_profile("market", location_id=make_location()["id"]))

        with pytest.raises(BadInputError, match="home_address"):
            vendors.update(vendor["id"], owner["id"], VendorUpdate(home_address="12 Allen Avenue"))

    def test_home_vendor_cannot_take_shop_fields(self, make_user, make_location, vendors, vendor_profile):
        owner = make_user()
        vendor = vendors.create(owner["id"], vendor_profile("home_based", **HOME))

        with pytest.raises(BadInputError, match="location_id, shop_number"):
            vendors.update(
                vendor["id"], owner["id"], VendorUpdate(location_id=make_location()["id"], shop_number="B12")
            )

    def test_each_variant_keeps_its_own_fields(self, make_user, make_location, vendors, vendor_profile):
        home_owner = make_user()
        home = vendors.create(home_owner["id"], vendor_profile("home_based", **HOME))
        moved = vendors.update(
            home["id"], home_owner["id"],
            VendorUpdate(home_area="Opebi", coordinates={"longitude": 3.36, "latitude": 6.59}),
        )
        assert moved["home_area"] == "Opebi"
        assert moved["coordinates"]["coordinates"] == [3.36, 6.59]

        shop_owner = make_user()
        shop = vendors.create(shop_owner["id"], vendor_profile("mall", location_id=make_location()["id"]))
        assert vendors.update(shop["id"], shop_owner["id"], VendorUpdate(shop_floor="2"))["shop_floor"] == "2"


@pytest.mark.unit
class TestVendorProximity:
    """The store evaluates $near; these check the query the service sends."""

    @pytest.fixture
    def store(self):
        database = MagicMock()
        collection = database.__getitem__.return_value
        cursor = collection.find.return_value
        nearest = {"_id": "a", "business_name": "Nearest", "coordinates": {"type": "Point", "coordinates": [3.39, 6.45]}}
        farther = {"_id": "b", "business_name": "Farther", "coordinates": {"type": "Point", "coordinates": [3.30, 6.50]}}
        cursor.skip.return_value.limit.return_value = [nearest, farther]
        collection.count_documents.return_value = 2
        return VendorService(database, users=MagicMock(), locations=MagicMock()), collection, cursor

    def test_public_listing_with_proximity(self, store):
        service, collection, cursor = store

        result = service.find_all(VendorQuery(latitude=6.45, longitude=3.39, radius_km=5, status="pending"), public_only=True)

        query = collection.find.call_args[0][0]
        assert query["status"] == "verified"
        assert query["coordinates"]["$near"]["$maxDistance"] == 5000
        assert query["coordinates"]["$near"]["$geometry"]["coordinates"] == [3.39, 6.45]
        cursor.sort.assert_not_called()
        assert [v["business_name"] for v in result["items"]] == ["Nearest", "Farther"]

        count_query = collection.count_documents.call_args[0][0]
        assert count_query["status"] == "verified"
        assert "$near" not in count_query["coordinates"]
        assert "$geoWithin" in count_query["coordinates"]
        assert result["total"] == 2

    def test_find_nearby_is_verified_only(self, store):
        service, collection, _ = store
        collection.find.return_value = [
            {"_id": "a", "business_name": "Nearest", "coordinates": {"type": "Point", "coordinates": [3.39, 6.45]}},
        ]

        result = service.find_nearby(3.39, 6.45, 2)

        query = collection.find.call_args[0][0]
        assert query["status"] == "verified"
        assert query["coordinates"]["$near"]["$maxDistance"] == 2000
        assert result[0]["id"] == "a"
        assert result[0]["distance_km"] == 0


@pytest.mark.unit
class TestVendorStatus:
    def test_verify_stamps_and_clears_reason(self, make_user, vendors, vendor_profile, admin_user):
        owner = make_user()
        vendor = vendors.create(owner["id"], vendor_profile())
        vendors.update_status(vendor["id"], admin_user["id"], "rejected", "blurry ID")

        verified = vendors.update_status(vendor["id"], admin_user["id"], "verified")

        assert verified["status"] == "verified"
        assert verified["verified_by"] == admin_user["id"]
        assert verified["verified_at"] is not None
        assert "rejection_reason" not in verified

    def test_suspend_sets_reason_and_clears_verification(self, verified_vendor, vendors, admin_user):
        _, vendor = verified_vendor

        suspended = vendors.update_status(vendor["id"], admin_user["id"], "suspended", "complaints")

        assert suspended["status"] == "suspended"
        assert suspended["rejection_reason"] == "complaints"
        assert "verified_at" not in suspended
        assert "verified_by" not in suspended

    def test_missing_vendor(self, vendors, admin_user):
        with pytest.raises(NotFoundError):
            vendors.update_status("64b7f0c2a1b2c3d4e5f60718", admin_user["id"], "verified")

    def test_default_mode_accepts_any_target(self, verified_vendor, vendors, admin_user):
        _, vendor = verified_vendor
        assert vendors.update_status(vendor["id"], admin_user["id"], "pending")["status"] == "pending"

    def test_strict_mode_rejects_illegal_transition(self, db, users, locations, verified_vendor, admin_user):
        strict = VendorService(db, users, locations, strict=True)
        _, vendor = verified_vendor

        with pytest.raises(BadInputError):
            strict.update_status(vendor["id"], admin_user["id"], "rejected", "late")
        assert strict.update_status(vendor["id"], admin_user["id"], "suspended", "late")["status"] == "suspended"
        assert strict.update_status(vendor["id"], admin_user["id"], "verified")["status"] == "verified"

    def test_strict_mode_detects_concurrent_change(self, db, users, locations, verified_vendor, admin_user):
        strict = VendorService(db, users, locations, strict=True)
        _, vendor = verified_vendor
        stale = dict(db["vendor"].find_one({"user_id": vendor["user_id"]}), status="pending")

        with patch.object(strict, "_get_raw", return_value=stale):
            with pytest.raises(ConflictError):
                strict.update_status(vendor["id"], admin_user["id"], "rejected", "late")


@pytest.mark.unit
class TestVendorRemove:
    def test_remove_reverses_side_effects(self, make_user, make_location, users, vendors, locations, vendor_profile):
        location = make_location()
        owner = make_user()
        vendor = vendors.create(owner["id"], vendor_profile("market", location_id=location["id"]))

        vendors.remove(vendor["id"], owner["id"])

        assert locations.get_by_id(location["id"])["total_vendors"] == 0
        assert users.find_one(owner["id"])["role"] == "user"
        with pytest.raises(NotFoundError):
            vendors.find_one(vendor["id"])

    def test_non_owner_cannot_remove(self, make_user, vendors, vendor_profile):
        owner = make_user()
        vendor = vendors.create(owner["id"], vendor_profile())

        with pytest.raises(ForbiddenError):
            vendors.remove(vendor["id"], make_user()["id"])

    def test_owner_can_register_again_after_removal(self, make_user, vendors, vendor_profile):
        owner = make_user()
        vendor = vendors.create(owner["id"], vendor_profile())
        vendors.remove(vendor["id"], owner["id"])

        again = vendors.create(owner["id"], vendor_profile(business_name="Fresh start"))
        assert again["business_name"] == "Fresh start"
