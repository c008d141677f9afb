"""
Database package for the checkout backend.

Exports database initialization, models, and session management.
"""
from .init_db import initialize_database, get_db, get_async_session, AsyncSessionLocal
from .models import (
    Base,
    CustomerModel,
    ProductModel,
    TransactionModel,
    DeliveryModel
)

__all__ = [
    "initialize_database",
    "get_db",
    "get_async_session",
    "AsyncSessionLocal",
    "Base",
    "CustomerModel",
    "ProductModel",
    "TransactionModel",
    "DeliveryModel",
]
