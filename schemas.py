"""
Database Schemas

Marketplace collections using MongoDB with Pydantic models for validation.
Each stored model maps to a MongoDB collection with the lowercase name.

Collections:
- User: accounts with email login, hashed passwords and a role (JWT auth)
- Location: named markets/malls/areas with a GeoJSON point
- Vendor: one seller profile per user, verified by an admin
- Goods: listings owned by a vendor, moderated by an admin
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, EmailStr, Field

import config

Role = Literal["user", "vendor", "admin"]
LocationType = Literal["market", "mall", "plaza", "street", "estate"]
VendorType = Literal["market", "mall", "home_based", "online_only"]
VendorStatus = Literal["pending", "verified", "rejected", "suspended"]
GoodsType = Literal["product", "service"]
GoodsStatus = Literal["pending", "approved", "flagged", "dropped"]
SortOrder = Literal["asc", "desc"]
GoodsSortField = Literal["created_at", "price", "views", "title"]

LOCATION_VENDOR_TYPES = ("market", "mall")


class Coordinates(BaseModel):
    longitude: float = Field(..., ge=-180, le=180)
    latitude: float = Field(..., ge=-90, le=90)


# ---------- USERS ----------
class User(BaseModel):
    first_name: str
    last_name: str
    email: EmailStr
    password_hash: str
    phone: Optional[str] = None
    avatar: Optional[str] = None
    role: Role = "user"
    is_active: bool = True
    last_login: Optional[datetime] = None


class UserCreate(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=8)
    phone: Optional[str] = None


class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None
    is_active: Optional[bool] = None


class PasswordUpdate(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RoleUpdate(BaseModel):
    role: Role


class UserOut(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: EmailStr
    phone: Optional[str] = None
    avatar: Optional[str] = None
    role: Role
    is_active: bool = True


# ---------- LOCATIONS ----------
class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1)
    type: LocationType
    state: str = Field(..., min_length=1)
    lga: str = Field(..., min_length=1)
    area: str = Field(..., min_length=1)
    address: Optional[str] = None
    description: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    images: List[str] = Field(default_factory=list)
    opening_hours: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[EmailStr] = None


class LocationUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[LocationType] = None
    state: Optional[str] = None
    lga: Optional[str] = None
    area: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    images: Optional[List[str]] = None
    opening_hours: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    is_active: Optional[bool] = None


class LocationQuery(BaseModel):
    page: int = Field(config.DEFAULT_PAGE, ge=1)
    limit: int = Field(20, ge=1, le=config.MAX_LIMIT)
    type: Optional[LocationType] = None
    state: Optional[str] = None
    lga: Optional[str] = None
    area: Optional[str] = None
    search: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    radius_km: float = Field(config.DEFAULT_RADIUS_KM, gt=0, le=config.MAX_RADIUS_KM)


# ---------- VENDORS ----------
class VendorProfile(BaseModel):
    """Fields shared by every vendor type."""

    business_name: str = Field(..., min_length=1)
    business_description: str = Field(..., min_length=1)
    business_phone: Optional[str] = None
    business_email: Optional[EmailStr] = None
    logo: Optional[str] = None
    documents: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    whatsapp_number: Optional[str] = None
    instagram_handle: Optional[str] = None
    facebook_page: Optional[str] = None
    opening_hours: Optional[str] = None


class LocationVendorCreate(VendorProfile):
    """Vendor trading from a registered market or mall."""

    vendor_type: Literal["market", "mall"]
    location_id: str = Field(..., min_length=1)
    shop_number: Optional[str] = None
    shop_floor: Optional[str] = None
    shop_block: Optional[str] = None


class HomeVendorCreate(VendorProfile):
    """Vendor trading from a home address."""

    vendor_type: Literal["home_based"]
    home_address: str = Field(..., min_length=1)
    home_state: str = Field(..., min_length=1)
    home_lga: str = Field(..., min_length=1)
    home_area: str = Field(..., min_length=1)
    coordinates: Optional[Coordinates] = None


class OnlineVendorCreate(VendorProfile):
    vendor_type: Literal["online_only"]


VendorVariant = Union[LocationVendorCreate, HomeVendorCreate, OnlineVendorCreate]
VendorCreate = Annotated[VendorVariant, Field(discriminator="vendor_type")]


class VendorUpdate(BaseModel):
    business_name: Optional[str] = None
    business_description: Optional[str] = None
    location_id: Optional[str] = None
    shop_number: Optional[str] = None
    shop_floor: Optional[str] = None
    shop_block: Optional[str] = None
    home_address: Optional[str] = None
    home_state: Optional[str] = None
    home_lga: Optional[str] = None
    home_area: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    business_phone: Optional[str] = None
    business_email: Optional[EmailStr] = None
    logo: Optional[str] = None
    documents: Optional[List[str]] = None
    images: Optional[List[str]] = None
    categories: Optional[List[str]] = None
    whatsapp_number: Optional[str] = None
    instagram_handle: Optional[str] = None
    facebook_page: Optional[str] = None
    opening_hours: Optional[str] = None
    is_open: Optional[bool] = None


class VendorStatusUpdate(BaseModel):
    status: VendorStatus
    reason: Optional[str] = None


class VendorQuery(BaseModel):
    page: int = Field(config.DEFAULT_PAGE, ge=1)
    limit: int = Field(config.DEFAULT_LIMIT, ge=1, le=config.MAX_LIMIT)
    status: Optional[VendorStatus] = None
    vendor_type: Optional[VendorType] = None
    state: Optional[str] = None
    lga: Optional[str] = None
    area: Optional[str] = None
    location_id: Optional[str] = None
    search: Optional[str] = None
    category: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    radius_km: float = Field(config.DEFAULT_RADIUS_KM, gt=0, le=config.MAX_RADIUS_KM)
    is_open: Optional[bool] = None


# ---------- GOODS ----------
class GoodsCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    price: float = Field(..., ge=0)
    type: GoodsType
    category: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    specifications: Dict[str, Any] = Field(default_factory=dict)
    condition: Optional[str] = None
    brand: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class GoodsUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    price: Optional[float] = Field(None, ge=0)
    type: Optional[GoodsType] = None
    category: Optional[str] = None
    images: Optional[List[str]] = None
    specifications: Optional[Dict[str, Any]] = None
    condition: Optional[str] = None
    brand: Optional[str] = None
    tags: Optional[List[str]] = None
    is_available: Optional[bool] = None


class GoodsStatusUpdate(BaseModel):
    status: GoodsStatus
    reason: Optional[str] = None


class GoodsQuery(BaseModel):
    page: int = Field(config.DEFAULT_PAGE, ge=1)
    limit: int = Field(config.DEFAULT_LIMIT, ge=1, le=config.MAX_LIMIT)
    status: Optional[GoodsStatus] = None
    type: Optional[GoodsType] = None
    category: Optional[str] = None
    search: Optional[str] = None
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    vendor_id: Optional[str] = None
    condition: Optional[str] = None
    brand: Optional[str] = None
    sort_by: GoodsSortField = "created_at"
    sort_order: SortOrder = "desc"


# ---------- ADMIN ----------
class ReasonBody(BaseModel):
    reason: str = Field(..., min_length=1)
