"""
Pydantic Schemas for Request/Response Validation

JSON field names are camelCase on the wire (``phoneNumber``, ``menuItemId``)
while Python code uses snake_case. Money is a ``Decimal`` with two decimal
places, serialized as a string (``"150.00"``).
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel


CENT = Decimal("0.01")
# Largest value a NUMERIC(10,2) column holds
MAX_MONEY = Decimal("99999999.99")


def quantize_money(value: Decimal) -> Decimal:
    """Round ``value`` to whole cents."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Decimal) -> str:
    return f"{quantize_money(value):.2f}"


Money = Annotated[
    Decimal,
    Field(ge=0, max_digits=10, decimal_places=2),
    PlainSerializer(format_money, return_type=str, when_used="json"),
]


# =============================================================================
# ENUMS
# =============================================================================

class OrderStatusEnum(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class ChatDirectionEnum(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, snake_case accepted too, ORM-readable."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# USERS
# =============================================================================

class UserCreate(CamelModel):
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=8, max_length=72)
    role: str = Field(default="customer", max_length=20, examples=["customer", "admin"])
    phone_number: Optional[str] = Field(None, max_length=20)


class UserResponse(CamelModel):
    """Public view of a user; the password hash is never exposed."""
    id: int
    username: str
    role: str
    phone_number: Optional[str] = None


class UserRecord(UserResponse):
    """Stored user including the bcrypt password hash."""
    password: str = Field(..., exclude=True)


# =============================================================================
# RESTAURANTS
# =============================================================================

class RestaurantCreate(CamelModel):
    """Request schema for creating a restaurant."""
    name: str = Field(..., min_length=1, max_length=200, examples=["Nepalgunj Cloud Kitchen"])
    type: str = Field(default="restaurant", max_length=50, examples=["cloud_kitchen"])
    address: Optional[str] = Field(None, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=20, examples=["9800000000"])
    image: Optional[str] = Field(None, max_length=500)


class RestaurantResponse(RestaurantCreate):
    id: int


# =============================================================================
# MENU ITEMS
# =============================================================================

class MenuItemCreate(CamelModel):
    """Request schema for adding a menu item to a restaurant."""
    name: str = Field(..., min_length=1, max_length=200, examples=["Chicken Momo"])
    description: Optional[str] = Field(None, max_length=1000)
    price: Money = Field(..., examples=["150.00"])
    category: Optional[str] = Field(None, max_length=100, examples=["Momo"])
    image_url: Optional[str] = Field(None, max_length=500)
    is_available: bool = True


class MenuItemInsert(MenuItemCreate):
    """Menu item ready for storage, bound to its restaurant."""
    restaurant_id: int


class MenuItemResponse(MenuItemInsert):
    id: int


# =============================================================================
# ORDERS
# =============================================================================

class OrderItemCreate(CamelModel):
    """Single requested order line."""
    menu_item_id: int = Field(..., examples=[1])
    quantity: int = Field(..., ge=1, le=999, examples=[2])


class OrderCreate(CamelModel):
    """Request schema for placing an order."""
    items: List[OrderItemCreate]


class OrderInsert(CamelModel):
    """Order row ready for storage."""
    user_id: int
    total_amount: Money
    status: OrderStatusEnum = OrderStatusEnum.PENDING


class OrderItemInsert(CamelModel):
    """Order line ready for storage; ``price`` is the snapshot."""
    menu_item_id: int
    quantity: int = Field(..., ge=1)
    price: Money


class OrderStatusUpdate(CamelModel):
    status: OrderStatusEnum


class OrderResponse(CamelModel):
    id: int
    user_id: int
    total_amount: Money
    status: str
    created_at: Optional[datetime] = None


class OrderItemResponse(CamelModel):
    id: int
    order_id: int
    menu_item_id: int
    quantity: int
    price: Money


class OrderItemDetail(OrderItemResponse):
    menu_item: MenuItemResponse


class OrderDetailResponse(OrderResponse):
    """Order joined with its lines and each line's menu item."""
    items: List[OrderItemDetail] = Field(default_factory=list)


# =============================================================================
# CHAT
# =============================================================================

class ChatLogCreate(CamelModel):
    phone_number: str = Field(..., max_length=20)
    message: str
    direction: ChatDirectionEnum = ChatDirectionEnum.INCOMING


class ChatLogResponse(CamelModel):
    id: int
    phone_number: str
    message: str
    direction: str
    created_at: Optional[datetime] = None


class WebhookAck(BaseModel):
    status: str = "received"


# =============================================================================
# SYSTEM
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    message: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    storage: str
    storage_backend: str
    timestamp: datetime
