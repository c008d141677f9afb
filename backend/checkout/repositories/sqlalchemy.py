"""
SQLAlchemy Repositories

Async implementations of the repository ports over one AsyncSession.
Writes are flushed, not committed: the session owner decides when the
unit of work commits, so a transaction and its delivery land together.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import CustomerModel, DeliveryModel, ProductModel, TransactionModel
from ..exceptions import ConcurrentModificationError
from ..models.entities import Customer, Delivery, Product, Transaction, TransactionStatus, utcnow
from .base import CustomerRepository, DeliveryRepository, ProductRepository, TransactionRepository

logger = logging.getLogger(__name__)


def _columns(row: Any) -> Dict[str, Any]:
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


# ============================================================================
# Customers
# ============================================================================

class SqlAlchemyCustomerRepository(CustomerRepository):

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, customer: Customer) -> Customer:
        self.db.add(CustomerModel(**customer.model_dump()))
        await self.db.flush()
        logger.debug(f"Created customer: {customer.id}")
        return customer

    async def find_by_id(self, customer_id: str) -> Optional[Customer]:
        row = await self.db.get(CustomerModel, customer_id)
        return Customer(**_columns(row)) if row else None

    async def find_by_email(self, email: str) -> Optional[Customer]:
        result = await self.db.execute(select(CustomerModel).where(CustomerModel.email == email))
        row = result.scalar_one_or_none()
        return Customer(**_columns(row)) if row else None

    async def update(self, customer: Customer) -> Customer:
        await self.db.execute(
            update(CustomerModel)
            .where(CustomerModel.id == customer.id)
            .values(full_name=customer.full_name, phone=customer.phone, updated_at=customer.updated_at)
        )
        return customer

    async def delete(self, customer_id: str) -> None:
        await self.db.execute(delete(CustomerModel).where(CustomerModel.id == customer_id))

    async def find_all(self) -> List[Customer]:
        result = await self.db.execute(select(CustomerModel).order_by(CustomerModel.created_at))
        return [Customer(**_columns(row)) for row in result.scalars().all()]


# ============================================================================
# Products
# ============================================================================

class SqlAlchemyProductRepository(ProductRepository):

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, product: Product) -> Product:
        self.db.add(ProductModel(**product.model_dump()))
        await self.db.flush()
        return product

    async def find_by_id(self, product_id: str) -> Optional[Product]:
        row = await self.db.get(ProductModel, product_id)
        return Product(**_columns(row)) if row else None

    async def find_all(self) -> List[Product]:
        result = await self.db.execute(select(ProductModel).order_by(ProductModel.name))
        return [Product(**_columns(row)) for row in result.scalars().all()]

    async def find_all_available(self) -> List[Product]:
        result = await self.db.execute(
            select(ProductModel)
            .where(ProductModel.is_active.is_(True), ProductModel.stock_quantity > 0)
            .order_by(ProductModel.name)
        )
        return [Product(**_columns(row)) for row in result.scalars().all()]

    async def update(self, product: Product) -> Product:
        values = product.model_dump(exclude={"id", "created_at"})
        await self.db.execute(update(ProductModel).where(ProductModel.id == product.id).values(**values))
        logger.debug(f"Updated product {product.id}: stock={product.stock_quantity}")
        return product

    async def update_stock(self, product_id: str, stock_quantity: int) -> None:
        await self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(stock_quantity=stock_quantity, updated_at=utcnow())
        )

    async def delete(self, product_id: str) -> None:
        await self.db.execute(delete(ProductModel).where(ProductModel.id == product_id))


# ============================================================================
# Transactions
# ============================================================================

class SqlAlchemyTransactionRepository(TransactionRepository):

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _to_entity(row: TransactionModel) -> Transaction:
        return Transaction(**_columns(row))

    @staticmethod
    def _to_row_values(transaction: Transaction) -> Dict[str, Any]:
        values = transaction.model_dump()
        values["status"] = transaction.status.value
        return values

    async def create(self, transaction: Transaction) -> Transaction:
        self.db.add(TransactionModel(**self._to_row_values(transaction)))
        await self.db.flush()
        logger.debug(f"Created transaction: {transaction.transaction_no}")
        return transaction

    async def find_by_id(self, transaction_id: str) -> Optional[Transaction]:
        row = await self.db.get(TransactionModel, transaction_id)
        return self._to_entity(row) if row else None

    async def find_by_transaction_no(self, transaction_no: str) -> Optional[Transaction]:
        result = await self.db.execute(
            select(TransactionModel).where(TransactionModel.transaction_no == transaction_no)
        )
        row = result.scalar_one_or_none()
        return self._to_entity(row) if row else None

    async def find_by_customer_id(self, customer_id: str) -> List[Transaction]:
        result = await self.db.execute(
            select(TransactionModel)
            .where(TransactionModel.customer_id == customer_id)
            .order_by(TransactionModel.created_at.desc())
        )
        return [self._to_entity(row) for row in result.scalars().all()]

    async def find_pending_by_customer_id(self, customer_id: str) -> Optional[Transaction]:
        result = await self.db.execute(
            select(TransactionModel)
            .where(
                TransactionModel.customer_id == customer_id,
                TransactionModel.status == TransactionStatus.PENDING.value,
            )
            .order_by(TransactionModel.created_at.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return self._to_entity(row) if row else None

    async def update(self, transaction: Transaction) -> Transaction:
        """
        Conditional update: WHERE id = :id AND version = :version.

        Zero rows affected means another request already moved the row on.
        """
        expected_version = transaction.version
        values = self._to_row_values(transaction)
        for immutable in ("id", "transaction_no", "created_at"):
            values.pop(immutable)
        values["version"] = expected_version + 1

        result = await self.db.execute(
            update(TransactionModel)
            .where(
                TransactionModel.id == transaction.id,
                TransactionModel.version == expected_version,
            )
            .values(**values)
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount == 0:
            logger.warning(
                f"Stale update for transaction {transaction.transaction_no} "
                f"(version {expected_version})"
            )
            raise ConcurrentModificationError(transaction.id, expected_version)

        transaction.version = expected_version + 1
        return transaction

    async def update_status(self, transaction_id: str, status: TransactionStatus) -> None:
        await self.db.execute(
            update(TransactionModel)
            .where(TransactionModel.id == transaction_id)
            .values(
                status=status.value,
                version=TransactionModel.version + 1,
                updated_at=utcnow(),
            )
        )

    async def find_all(self) -> List[Transaction]:
        result = await self.db.execute(select(TransactionModel).order_by(TransactionModel.created_at.desc()))
        return [self._to_entity(row) for row in result.scalars().all()]


# ============================================================================
# Deliveries
# ============================================================================

class SqlAlchemyDeliveryRepository(DeliveryRepository):

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, delivery: Delivery) -> Delivery:
        self.db.add(DeliveryModel(**delivery.model_dump()))
        await self.db.flush()
        return delivery

    async def find_by_id(self, delivery_id: str) -> Optional[Delivery]:
        row = await self.db.get(DeliveryModel, delivery_id)
        return Delivery(**_columns(row)) if row else None

    async def find_by_transaction_id(self, transaction_id: str) -> Optional[Delivery]:
        result = await self.db.execute(
            select(DeliveryModel).where(DeliveryModel.transaction_id == transaction_id)
        )
        row = result.scalar_one_or_none()
        return Delivery(**_columns(row)) if row else None

    async def update(self, delivery: Delivery) -> Delivery:
        values = delivery.model_dump(exclude={"id", "transaction_id", "created_at"})
        await self.db.execute(update(DeliveryModel).where(DeliveryModel.id == delivery.id).values(**values))
        return delivery

    async def find_all(self) -> List[Delivery]:
        result = await self.db.execute(select(DeliveryModel).order_by(DeliveryModel.created_at))
        return [Delivery(**_columns(row)) for row in result.scalars().all()]
