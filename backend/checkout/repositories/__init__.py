"""
Repository package.

Exports the repository ports and their SQLAlchemy implementations.
"""
from .base import CustomerRepository, ProductRepository, TransactionRepository, DeliveryRepository
from .sqlalchemy import (
    SqlAlchemyCustomerRepository,
    SqlAlchemyProductRepository,
    SqlAlchemyTransactionRepository,
    SqlAlchemyDeliveryRepository,
)

__all__ = [
    "CustomerRepository",
    "ProductRepository",
    "TransactionRepository",
    "DeliveryRepository",
    "SqlAlchemyCustomerRepository",
    "SqlAlchemyProductRepository",
    "SqlAlchemyTransactionRepository",
    "SqlAlchemyDeliveryRepository",
]
