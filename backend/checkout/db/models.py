"""
SQLAlchemy ORM Models for the checkout backend

Tables: customers, products, transactions, deliveries.
Check constraints mirror the entity invariants so bad rows cannot persist.
"""

from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Text, Numeric, CheckConstraint, Index
from sqlalchemy.orm import declarative_base

from ..models.entities import utcnow

Base = declarative_base()

MONEY = Numeric(12, 2, asdecimal=True)


class CustomerModel(Base):
    """
    ORM model for customers table.

    One row per email; created on first order.
    """
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(100), nullable=False)
    phone = Column(String(20))
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)


class ProductModel(Base):
    """
    ORM model for products table.

    Stock is only decremented by approved settlements.
    """
    __tablename__ = "products"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    price = Column(MONEY, nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)
    image_url = Column(String(500))
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("price >= 0", name="product_price_check"),
        CheckConstraint("stock_quantity >= 0", name="product_stock_check"),
    )


class TransactionModel(Base):
    """
    ORM model for transactions table.

    `version` backs the optimistic check that keeps two settlements from
    both moving the same row out of PENDING.
    """
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True)
    transaction_no = Column(String(50), nullable=False, unique=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False)
    status = Column(String(20), nullable=False, default="PENDING")
    quantity = Column(Integer, nullable=False, default=1)
    amount = Column(MONEY, nullable=False)
    base_fee = Column(MONEY, nullable=False)
    delivery_fee = Column(MONEY, nullable=False)
    total_amount = Column(MONEY, nullable=False)
    gateway_transaction_id = Column(String(255))
    gateway_reference = Column(String(255))
    card_brand = Column(String(50))
    card_last_four = Column(String(4))
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("status IN ('PENDING', 'APPROVED', 'DECLINED', 'ERROR')", name="status_check"),
        CheckConstraint("amount >= 0 AND base_fee >= 0 AND delivery_fee >= 0 AND total_amount >= 0",
                        name="amounts_check"),
        CheckConstraint("quantity >= 1", name="quantity_check"),
        Index("idx_transactions_customer_status_created", "customer_id", "status", "created_at"),
    )


class DeliveryModel(Base):
    """
    ORM model for deliveries table.

    Exactly one delivery per transaction.
    """
    __tablename__ = "deliveries"

    id = Column(String(36), primary_key=True)
    transaction_id = Column(String(36), ForeignKey("transactions.id"), nullable=False, unique=True)
    full_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=False)
    address = Column(String(200), nullable=False)
    city = Column(String(50), nullable=False)
    state = Column(String(50), nullable=False)
    postal_code = Column(String(10))
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
