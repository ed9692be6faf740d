"""
SQLAlchemy ORM Models Package.

Models are organized into domain-specific modules:
- base: Base class and TimestampMixin
- restaurant: Restaurant, Table
- user: Customer, Staff, AdminUser
- menu: MenuCategory, MenuItem, CartItem
- reservation: Reservation
- order: Order, OrderItem
- billing: Payment, PaymentTransaction
- notification: Notification
"""

# Base classes
from .base import Base, TimestampMixin

# Venues and principals
from .restaurant import Restaurant, Table
from .user import Customer, Staff, AdminUser

# Menu
from .menu import MenuCategory, MenuItem, CartItem

# Bookings and orders
from .reservation import Reservation
from .order import Order, OrderItem
from .billing import Payment, PaymentTransaction

# Inboxes
from .notification import Notification


__all__ = [
    "Base",
    "TimestampMixin",
    "Restaurant",
    "Table",
    "Customer",
    "Staff",
    "AdminUser",
    "MenuCategory",
    "MenuItem",
    "CartItem",
    "Reservation",
    "Order",
    "OrderItem",
    "Payment",
    "PaymentTransaction",
    "Notification",
]
