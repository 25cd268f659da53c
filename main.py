import logging
import os
from contextlib import asynccontextmanager
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

import config
from admin import ModerationService
from auth import AuthService, decode_access_token
from bootstrap import run_startup
from database import db, get_db
from errors import ForbiddenError, MarketplaceError, NotFoundError, UnauthorizedError
from goods import GoodsService
from locations import LocationService
from schemas import (
    GoodsCreate,
    GoodsQuery,
    GoodsStatusUpdate,
    GoodsUpdate,
    LocationCreate,
    LocationQuery,
    LocationUpdate,
    LoginRequest,
    PasswordUpdate,
    ReasonBody,
    RoleUpdate,
    UserCreate,
    UserOut,
    UserUpdate,
    VendorQuery,
    VendorStatusUpdate,
    VendorUpdate,
    VendorVariant,
)
from users import UserService
from vendors import VendorService

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if db is not None:
        run_startup(db)
    else:
        logger.warning("DATABASE_URL/DATABASE_NAME not set, skipping startup tasks")
    yield


app = FastAPI(title="Marketplace API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "error": exc.kind})


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error", "error": "internal"})


# ---------- DEPENDENCIES ----------
class Services:
    """Per-request service graph over one database handle."""

    def __init__(self, database):
        self.users = UserService(database)
        self.locations = LocationService(database)
        self.vendors = VendorService(database, self.users, self.locations)
        self.goods = GoodsService(database, self.vendors)
        self.admin = ModerationService(self.users, self.vendors, self.goods, self.locations)
        self.auth = AuthService(self.users)


def get_database():
    database = get_db()
    if database is None:
        raise HTTPException(status_code=500, detail="Database not available")
    return database


def get_services(database=Depends(get_database)) -> Services:
    return Services(database)


def get_current_user(
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise UnauthorizedError("Not authenticated")
    user_id = decode_access_token(authorization.split(" ", 1)[1].strip())
    if not user_id:
        raise UnauthorizedError("Invalid token")
    try:
        user = services.users.find_one(user_id)
    except NotFoundError:
        raise UnauthorizedError("User not found")
    if not user.get("is_active", True):
        raise UnauthorizedError("Account is deactivated")
    return user


def require_roles(*roles: str):
    def checker(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if user.get("role") not in roles:
            raise ForbiddenError("You do not have permission to perform this action")
        return user

    return checker


require_admin = require_roles("admin")
require_seller = require_roles("vendor", "admin")

CurrentUser = Annotated[Dict[str, Any], Depends(get_current_user)]
AdminUser = Annotated[Dict[str, Any], Depends(require_admin)]
SellerUser = Annotated[Dict[str, Any], Depends(require_seller)]
Svc = Annotated[Services, Depends(get_services)]

Page = Annotated[int, Query(ge=1)]
Limit = Annotated[int, Query(ge=1, le=config.MAX_LIMIT)]
Longitude = Annotated[float, Query(ge=-180, le=180, description="Longitude")]
Latitude = Annotated[float, Query(ge=-90, le=90, description="Latitude")]
RadiusKm = Annotated[float, Query(gt=0, le=config.MAX_RADIUS_KM, description="Search radius in kilometers")]


@app.get("/")
def read_root():
    return {"name": "Marketplace API", "status": "ok"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "❌ Not Set",
        "database_name": "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": [],
    }
    database = get_db()
    if database is None:
        response["database"] = "⚠️ Database not initialized"
        return response

    response["database"] = "✅ Available"
    response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
    response["database_name"] = os.getenv("DATABASE_NAME") or "❌ Not Set"
    try:
        response["collections"] = database.list_collection_names()
        response["database"] = "✅ Connected & Working"
        response["connection_status"] = "Connected"
    except PyMongoError as e:
        response["database"] = f"⚠️ Connected but error: {str(e)[:80]}"
    return response


router = APIRouter(prefix=config.API_PREFIX)


# ---------- AUTH ----------
@router.post("/auth/register", status_code=201)
def register(payload: UserCreate, services: Svc):
    return services.auth.register(payload)


@router.post("/auth/login")
def login(req: LoginRequest, services: Svc):
    return services.auth.login(req.email, req.password)


@router.get("/auth/me", response_model=UserOut)
def me(current: CurrentUser):
    return current


# ---------- USERS ----------
@router.patch("/users/me")
def update_me(payload: UserUpdate, current: CurrentUser, services: Svc):
    # role and activation are admin concerns
    return services.users.update(current["id"], payload.model_copy(update={"is_active": None}))


@router.patch("/users/me/password")
def change_password(payload: PasswordUpdate, current: CurrentUser, services: Svc):
    services.users.update_password(current["id"], payload.current_password, payload.new_password)
    return {"message": "Password updated successfully"}


@router.get("/users")
def list_users(admin: AdminUser, services: Svc, page: Page = 1, limit: Limit = config.DEFAULT_LIMIT, role: Optional[str] = None):
    return services.users.find_all(page, limit, role)


@router.get("/users/{user_id}")
def get_user(user_id: str, admin: AdminUser, services: Svc):
    return services.users.find_one(user_id)


@router.patch("/users/{user_id}")
def admin_update_user(user_id: str, payload: UserUpdate, admin: AdminUser, services: Svc):
    return services.users.update(user_id, payload)


@router.patch("/users/{user_id}/role")
def update_user_role(user_id: str, payload: RoleUpdate, admin: AdminUser, services: Svc):
    return services.users.update_role(user_id, payload.role)


@router.delete("/users/{user_id}")
def delete_user(user_id: str, admin: AdminUser, services: Svc):
    services.users.remove(user_id)
    return {"message": "User deleted successfully"}


# ---------- LOCATIONS ----------
@router.post("/locations", status_code=201)
def create_location(payload: LocationCreate, admin: AdminUser, services: Svc):
    return services.locations.create(payload)


@router.get("/locations")
def list_locations(filters: Annotated[LocationQuery, Query()], services: Svc):
    return services.locations.list(filters)


@router.get("/locations/states")
def list_states(services: Svc):
    return services.locations.list_states()


@router.get("/locations/stats/by-state")
def location_stats(services: Svc):
    return services.locations.stats_by_state()


@router.get("/locations/by-state/{state}")
def locations_by_state(state: str, services: Svc):
    return services.locations.find_by_state(state)


@router.get("/locations/nearby")
def nearby_locations(longitude: Longitude, latitude: Latitude, services: Svc, radius_km: RadiusKm = config.DEFAULT_RADIUS_KM):
    return services.locations.find_nearby(longitude, latitude, radius_km)


@router.get("/locations/{location_id}")
def get_location(location_id: str, services: Svc):
    return services.locations.get_by_id(location_id)


@router.patch("/locations/{location_id}")
def update_location(location_id: str, payload: LocationUpdate, admin: AdminUser, services: Svc):
    return services.locations.update(location_id, payload)


@router.delete("/locations/{location_id}")
def delete_location(location_id: str, admin: AdminUser, services: Svc):
    services.locations.delete(location_id)
    return {"message": "Location deleted successfully"}


# ---------- VENDORS ----------
@router.post("/vendors", status_code=201)
def create_vendor(payload: Annotated[VendorVariant, Body(discriminator="vendor_type")], current: CurrentUser, services: Svc):
    return services.vendors.create(current["id"], payload)


@router.get("/vendors")
def list_vendors(filters: Annotated[VendorQuery, Query()], services: Svc):
    return services.vendors.find_all(filters, public_only=True)


@router.get("/vendors/admin")
def admin_list_vendors(filters: Annotated[VendorQuery, Query()], admin: AdminUser, services: Svc):
    return services.vendors.find_all(filters, public_only=False)


@router.get("/vendors/my-profile")
def my_vendor_profile(current: CurrentUser, services: Svc):
    vendor = services.vendors.find_by_user_id(current["id"])
    if not vendor:
        raise NotFoundError("Vendor profile not found")
    return vendor


@router.get("/vendors/categories")
def vendor_categories(services: Svc):
    return services.vendors.categories()


@router.get("/vendors/nearby")
def nearby_vendors(longitude: Longitude, latitude: Latitude, services: Svc, radius_km: RadiusKm = config.DEFAULT_RADIUS_KM):
    vendors = services.vendors.find_nearby(longitude, latitude, radius_km)
    return {"count": len(vendors), "vendors": vendors}


@router.get("/vendors/by-location/{location_id}")
def vendors_by_location(location_id: str, services: Svc):
    return services.vendors.find_by_location(location_id)


@router.get("/vendors/{vendor_id}")
def get_vendor(vendor_id: str, services: Svc):
    return services.vendors.find_one(vendor_id)


@router.patch("/vendors/{vendor_id}")
def update_vendor(vendor_id: str, payload: VendorUpdate, current: CurrentUser, services: Svc):
    return services.vendors.update(vendor_id, current["id"], payload)


@router.patch("/vendors/{vendor_id}/status")
def update_vendor_status(vendor_id: str, payload: VendorStatusUpdate, admin: AdminUser, services: Svc):
    return services.vendors.update_status(vendor_id, admin["id"], payload.status, payload.reason)


@router.delete("/vendors/{vendor_id}")
def delete_vendor(vendor_id: str, current: CurrentUser, services: Svc):
    services.vendors.remove(vendor_id, current["id"])
    return {"message": "Vendor profile deleted successfully"}


# ---------- GOODS ----------
@router.post("/goods", status_code=201)
def create_goods(payload: GoodsCreate, current: SellerUser, services: Svc):
    return services.goods.create(current["id"], payload)


@router.get("/goods")
def list_goods(filters: Annotated[GoodsQuery, Query()], services: Svc):
    return services.goods.find_all(filters, public_only=True)


@router.get("/goods/admin")
def admin_list_goods(filters: Annotated[GoodsQuery, Query()], admin: AdminUser, services: Svc):
    return services.goods.find_all(filters, public_only=False)


@router.get("/goods/my-goods")
def my_goods(filters: Annotated[GoodsQuery, Query()], current: SellerUser, services: Svc):
    return services.goods.find_mine(current["id"], filters)


@router.get("/goods/categories")
def goods_categories(services: Svc):
    return services.goods.categories()


@router.get("/goods/stats")
def goods_stats(admin: AdminUser, services: Svc):
    return services.goods.get_stats()


@router.get("/goods/{goods_id}")
def get_goods(goods_id: str, services: Svc):
    return services.goods.find_one(goods_id, increment_views=True)


@router.patch("/goods/{goods_id}")
def update_goods(goods_id: str, payload: GoodsUpdate, current: SellerUser, services: Svc):
    return services.goods.update(goods_id, current["id"], payload)


@router.patch("/goods/{goods_id}/status")
def update_goods_status(goods_id: str, payload: GoodsStatusUpdate, admin: AdminUser, services: Svc):
    return services.goods.update_status(goods_id, admin["id"], payload.status, payload.reason)


@router.delete("/goods/{goods_id}")
def delete_goods(goods_id: str, current: SellerUser, services: Svc):
    services.goods.remove(goods_id, current["id"], is_admin=current["role"] == "admin")
    return {"message": "Goods deleted successfully"}


# ---------- ADMIN ----------
@router.get("/admin/dashboard")
def dashboard(admin: AdminUser, services: Svc):
    return services.admin.dashboard_stats()


@router.get("/admin/vendors/pending")
def pending_vendors(admin: AdminUser, services: Svc, page: Page = 1, limit: Limit = config.DEFAULT_LIMIT):
    return services.admin.pending_vendors(page, limit)


@router.patch("/admin/vendors/{vendor_id}/verify")
def verify_vendor(vendor_id: str, admin: AdminUser, services: Svc):
    return services.admin.verify_vendor(vendor_id, admin["id"])


@router.patch("/admin/vendors/{vendor_id}/reject")
def reject_vendor(vendor_id: str, body: ReasonBody, admin: AdminUser, services: Svc):
    return services.admin.reject_vendor(vendor_id, admin["id"], body.reason)


@router.patch("/admin/vendors/{vendor_id}/suspend")
def suspend_vendor(vendor_id: str, body: ReasonBody, admin: AdminUser, services: Svc):
    return services.admin.suspend_vendor(vendor_id, admin["id"], body.reason)


@router.get("/admin/goods/pending")
def pending_goods(admin: AdminUser, services: Svc, page: Page = 1, limit: Limit = config.DEFAULT_LIMIT):
    return services.admin.pending_goods(page, limit)


@router.patch("/admin/goods/{goods_id}/approve")
def approve_goods(goods_id: str, admin: AdminUser, services: Svc):
    return services.admin.approve_goods(goods_id, admin["id"])


@router.patch("/admin/goods/{goods_id}/flag")
def flag_goods(goods_id: str, body: ReasonBody, admin: AdminUser, services: Svc):
    return services.admin.flag_goods(goods_id, admin["id"], body.reason)


@router.patch("/admin/goods/{goods_id}/drop")
def drop_goods(goods_id: str, body: ReasonBody, admin: AdminUser, services: Svc):
    return services.admin.drop_goods(goods_id, admin["id"], body.reason)


@router.post("/admin/reconcile")
def reconcile_counters(admin: AdminUser, services: Svc):
    return services.admin.reconcile_counters()


app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
