"""
Shared Pydantic schemas used across the application.
"""

from datetime import date, datetime, time
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# =============================================================================
# Common Types
# =============================================================================

ReservationStatusLiteral = Literal[
    "pending", "confirmed", "cancellation_requested", "completed", "cancelled", "no-show"
]
OrderStatusLiteral = Literal[
    "pending", "confirmed", "preparing", "served", "ready", "completed", "cancelled"
]
PaymentStatusLiteral = Literal["unpaid", "pending", "paid", "refunded", "failed", "expired"]
PaymentMethodLiteral = Literal["cash", "card", "online_banking", "ewallet"]
StaffRoleLiteral = Literal["manager", "staff"]
TableLocationLiteral = Literal["indoor", "outdoor", "window", "private", "bar", "patio"]


# =============================================================================
# Authentication Schemas
# =============================================================================


class LoginRequest(BaseModel):
    """Login request body (customer, staff and admin)."""

    email: EmailStr
    password: str = Field(min_length=1)


class RegisterRequest(BaseModel):
    """Customer registration."""

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    phone: str | None = Field(default=None, max_length=20)


class PrincipalInfo(BaseModel):
    """Basic identity included in auth responses."""

    id: int
    name: str
    email: str
    role: str
    restaurant_id: int | None = None
    staff_role: str | None = None


class LoginResponse(BaseModel):
    """Login response with JWT token."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int  # seconds
    user: PrincipalInfo


class CustomerOutput(BaseModel):
    id: int
    name: str
    email: str
    phone: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Restaurant / Table Schemas
# =============================================================================


class RestaurantOutput(BaseModel):
    id: int
    name: str
    description: str | None = None
    cuisine_type: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    opening_time: str | None = None
    closing_time: str | None = None
    image_url: str | None = None
    rating: float = 0.0
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class RestaurantCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    cuisine_type: str | None = Field(default=None, max_length=100)
    address: str | None = None
    phone: str | None = Field(default=None, max_length=20)
    email: EmailStr | None = None
    opening_time: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    closing_time: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    image_url: str | None = None


class RestaurantUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    cuisine_type: str | None = Field(default=None, max_length=100)
    address: str | None = None
    phone: str | None = Field(default=None, max_length=20)
    email: EmailStr | None = None
    opening_time: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    closing_time: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    image_url: str | None = None
    is_active: bool | None = None


class TableOutput(BaseModel):
    id: int
    restaurant_id: int
    table_number: str
    capacity: int
    location: str | None = None
    is_available: bool

    model_config = ConfigDict(from_attributes=True)


class TableCreate(BaseModel):
    table_number: str = Field(min_length=1, max_length=20)
    capacity: int = Field(ge=1, le=8)
    location: TableLocationLiteral | None = None
    is_available: bool = True


class TableUpdate(BaseModel):
    table_number: str | None = Field(default=None, min_length=1, max_length=20)
    capacity: int | None = Field(default=None, ge=1, le=8)
    location: TableLocationLiteral | None = None
    is_available: bool | None = None


class FloorPlanTable(TableOutput):
    """Table with its booking state for the requested slot."""

    is_booked: bool = False


class FloorPlanResponse(BaseModel):
    restaurant_id: int
    reservation_date: date | None = None
    reservation_time: time | None = None
    tables: list[FloorPlanTable]


# =============================================================================
# Menu / Cart Schemas
# =============================================================================


class MenuCategoryOutput(BaseModel):
    id: int
    restaurant_id: int
    name: str
    description: str | None = None
    display_order: int

    model_config = ConfigDict(from_attributes=True)


class MenuCategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    display_order: int = 0


class MenuCategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    display_order: int | None = None


class MenuItemOutput(BaseModel):
    id: int
    restaurant_id: int
    category_id: int | None = None
    name: str
    description: str | None = None
    price: float
    image_url: str | None = None
    is_available: bool
    is_vegetarian: bool
    is_spicy: bool

    model_config = ConfigDict(from_attributes=True)


class MenuItemCreate(BaseModel):
    category_id: int | None = None
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: float = Field(ge=0, le=100_000)
    image_url: str | None = None
    is_available: bool = True
    is_vegetarian: bool = False
    is_spicy: bool = False


class MenuItemUpdate(BaseModel):
    category_id: int | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    price: float | None = Field(default=None, ge=0, le=100_000)
    image_url: str | None = None
    is_available: bool | None = None
    is_vegetarian: bool | None = None
    is_spicy: bool | None = None


class MenuCategoryWithItems(MenuCategoryOutput):
    items: list[MenuItemOutput] = []


class MenuOutput(BaseModel):
    restaurant_id: int
    categories: list[MenuCategoryWithItems]
    uncategorized: list[MenuItemOutput] = []


class CartItemInput(BaseModel):
    menu_item_id: int
    quantity: int = Field(default=1, ge=1, le=99)


class CartItemUpdate(BaseModel):
    quantity: int = Field(ge=1, le=99)


class CartItemOutput(BaseModel):
    id: int
    menu_item_id: int
    quantity: int
    name: str
    price: float
    restaurant_id: int
    subtotal: float


class CartOutput(BaseModel):
    items: list[CartItemOutput]
    total: float


# =============================================================================
# Reservation Schemas
# =============================================================================


class ReservationCreate(BaseModel):
    """Customer reservation request."""

    restaurant_id: int
    table_id: int | None = None
    reservation_date: date
    reservation_time: time
    party_size: int = Field(ge=1, le=50)
    special_requests: str | None = Field(default=None, max_length=1000)


class ReservationUpdate(BaseModel):
    special_requests: str | None = Field(default=None, max_length=1000)


class CancellationRequest(BaseModel):
    # Over-long reasons are accepted and truncated on save
    reason: str | None = None


class ReservationStatusUpdate(BaseModel):
    status: ReservationStatusLiteral


class ReservationOutput(BaseModel):
    id: int
    customer_id: int | None = None
    restaurant_id: int
    table_id: int | None = None
    reservation_date: date
    reservation_time: time
    party_size: int
    status: str
    special_requests: str | None = None
    cancellation_reason: str | None = None
    total_amount: float
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Order / Payment Schemas
# =============================================================================


class OrderItemInput(BaseModel):
    menu_item_id: int
    quantity: int = Field(ge=1, le=99)


class OrderCreate(BaseModel):
    restaurant_id: int
    reservation_id: int | None = None
    items: list[OrderItemInput] = Field(min_length=1)
    notes: str | None = Field(default=None, max_length=1000)


class OrderItemOutput(BaseModel):
    id: int
    menu_item_id: int | None = None
    quantity: int
    unit_price: float
    subtotal: float

    model_config = ConfigDict(from_attributes=True)


class OrderOutput(BaseModel):
    id: int
    customer_id: int | None = None
    restaurant_id: int
    reservation_id: int | None = None
    status: str
    payment_status: str
    payment_method: str | None = None
    total_amount: float
    notes: str | None = None
    created_at: datetime
    items: list[OrderItemOutput] = []

    model_config = ConfigDict(from_attributes=True)


class OrderStatusUpdate(BaseModel):
    status: OrderStatusLiteral


class PaymentCreate(BaseModel):
    """Manual/offline payment record."""

    order_id: int
    amount: float = Field(gt=0)
    payment_method: PaymentMethodLiteral
    transaction_reference: str | None = Field(default=None, max_length=255)


class PaymentOutput(BaseModel):
    id: int
    order_id: int
    amount: float
    payment_method: str
    status: str
    transaction_reference: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CheckoutRequest(BaseModel):
    """Request a hosted checkout for an order."""

    order_id: int


class CheckoutResponse(BaseModel):
    payment_id: str
    payment_url: str | None = None
    reference_number: str
    amount: float
    currency: str
    status: str


class PaymentTransactionOutput(BaseModel):
    id: int
    order_id: int
    payment_id: str
    reference_number: str
    payment_url: str | None = None
    amount: float
    currency: str
    status: str
    payment_method: str | None = None
    transaction_id: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class PaymentStatusOutput(BaseModel):
    """Gateway transaction status; verified=True when the gateway was consulted."""

    payment_id: str
    order_id: int
    status: str
    amount: float
    currency: str
    transaction_id: str | None = None
    verified: bool = False


class WebhookAck(BaseModel):
    """Webhook response. applied=False means the delivery was a replay or unknown."""

    received: bool = True
    applied: bool
    status: str | None = None


# =============================================================================
# Notification Schemas
# =============================================================================


class NotificationOutput(BaseModel):
    id: int
    type: str
    title: str
    message: str
    reservation_id: int | None = None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UnreadCount(BaseModel):
    count: int


class AffectedRows(BaseModel):
    updated: int


# =============================================================================
# Staff / Admin Schemas
# =============================================================================


class StaffOutput(BaseModel):
    id: int
    restaurant_id: int
    name: str
    email: str
    role: str
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StaffCreate(BaseModel):
    restaurant_id: int
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role: StaffRoleLiteral = "staff"


class StaffUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=6, max_length=128)
    role: StaffRoleLiteral | None = None
    is_active: bool | None = None


class VenueStats(BaseModel):
    """Dashboard counters for one restaurant."""

    reservations_today: int
    pending_reservations: int
    cancellation_requests: int
    orders_today: int
    active_orders: int
    revenue_today: float
    revenue_total: float


class PlatformStats(BaseModel):
    total_restaurants: int
    total_customers: int
    total_staff: int
    total_reservations: int
    total_orders: int
    total_revenue: float
    pending_reservations: int


class TopRestaurant(BaseModel):
    restaurant_id: int
    name: str
    reservation_count: int
    order_count: int
    revenue: float


class PeakHour(BaseModel):
    hour: int
    reservation_count: int


class RevenueByDay(BaseModel):
    day: date
    revenue: float
    order_count: int


class AnalyticsOverview(BaseModel):
    reservations_by_status: dict[str, int]
    orders_by_status: dict[str, int]
    payments_by_status: dict[str, int]
    average_party_size: float
    average_order_value: float
