import mongomock
import pytest
from fastapi.testclient import TestClient
from pydantic import TypeAdapter

from admin import ModerationService
from auth import create_access_token
from goods import GoodsService
from locations import LocationService
from schemas import GoodsCreate, LocationCreate, UserCreate, VendorCreate
from users import UserService
from vendors import VendorService


@pytest.fixture
def db():
    client = mongomock.MongoClient()
    database = client["marketplace_test"]
    # the unique indexes are what turn duplicate-key races into conflicts
    database["user"].create_index("email", unique=True)
    database["vendor"].create_index("user_id", unique=True)
    yield database
    client.close()


@pytest.fixture
def users(db):
    return UserService(db)


@pytest.fixture
def locations(db):
    return LocationService(db)


@pytest.fixture
def vendors(db, users, locations):
    return VendorService(db, users, locations, strict=False)


@pytest.fixture
def goods(db, vendors):
    return GoodsService(db, vendors, strict=False)


@pytest.fixture
def moderation(users, vendors, goods, locations):
    return ModerationService(users, vendors, goods, locations)


@pytest.fixture
def make_user(users):
    counter = {"n": 0}

    def _make(role="user", **overrides):
        counter["n"] += 1
        payload = UserCreate(
            first_name=overrides.pop("first_name", "Ada"),
            last_name=overrides.pop("last_name", "Obi"),
            email=overrides.pop("email", f"user{counter['n']}@example.com"),
            password=overrides.pop("password", "secret-pass-1"),
        )
        return users.create(payload, role=role)

    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user(role="admin", email="admin@example.com")


@pytest.fixture
def make_location(locations):
    def _make(**overrides):
        data = {
            "name": "Balogun Market",
            "type": "market",
            "state": "Lagos",
            "lga": "Lagos Island",
            "area": "Lagos Island",
            "address": "Balogun Street",
            "coordinates": {"longitude": 3.3878, "latitude": 6.4541},
        }
        data.update(overrides)
        return locations.create(LocationCreate(**data))

    return _make


@pytest.fixture
def vendor_profile():
    adapter = TypeAdapter(VendorCreate)

    def _make(vendor_type="online_only", **overrides):
        data = {
            "vendor_type": vendor_type,
            "business_name": "Ada Fabrics",
            "business_description": "Ankara and lace",
            "categories": ["fashion"],
        }
        data.update(overrides)
        return adapter.validate_python(data)

    return _make


@pytest.fixture
def verified_vendor(make_user, vendors, vendor_profile, admin_user):
    """A user with a verified online-only vendor profile."""
    owner = make_user()
    vendor = vendors.create(owner["id"], vendor_profile())
    vendor = vendors.update_status(vendor["id"], admin_user["id"], "verified")
    return owner, vendor


@pytest.fixture
def listing():
    def _make(**overrides):
        data = {
            "title": "Ankara fabric",
            "description": "Six yards of cotton Ankara",
            "price": 4500,
            "type": "product",
            "category": "fashion",
            "tags": ["ankara", "cotton"],
        }
        data.update(overrides)
        return GoodsCreate(**data)

    return _make


@pytest.fixture
def client(db):
    from main import app, get_database

    app.dependency_overrides[get_database] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_header():
    def _header(user):
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _header
