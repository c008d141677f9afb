"""Repository ports (abstract interfaces).

One contract per entity. Lookups return None when nothing matches; they
never raise for the not-found case.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models.entities import Customer, Delivery, Product, Transaction, TransactionStatus


class CustomerRepository(ABC):
    @abstractmethod
    async def create(self, customer: Customer) -> Customer: ...

    @abstractmethod
    async def find_by_id(self, customer_id: str) -> Optional[Customer]: ...

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[Customer]: ...

    @abstractmethod
    async def update(self, customer: Customer) -> Customer: ...

    @abstractmethod
    async def delete(self, customer_id: str) -> None: ...

    @abstractmethod
    async def find_all(self) -> List[Customer]: ...


class ProductRepository(ABC):
    @abstractmethod
    async def create(self, product: Product) -> Product: ...

    @abstractmethod
    async def find_by_id(self, product_id: str) -> Optional[Product]: ...

    @abstractmethod
    async def find_all(self) -> List[Product]: ...

    @abstractmethod
    async def find_all_available(self) -> List[Product]:
        """Active products with stock left."""
        ...

    @abstractmethod
    async def update(self, product: Product) -> Product: ...

    @abstractmethod
    async def update_stock(self, product_id: str, stock_quantity: int) -> None: ...

    @abstractmethod
    async def delete(self, product_id: str) -> None: ...


class TransactionRepository(ABC):
    @abstractmethod
    async def create(self, transaction: Transaction) -> Transaction: ...

    @abstractmethod
    async def find_by_id(self, transaction_id: str) -> Optional[Transaction]: ...

    @abstractmethod
    async def find_by_transaction_no(self, transaction_no: str) -> Optional[Transaction]: ...

    @abstractmethod
    async def find_by_customer_id(self, customer_id: str) -> List[Transaction]: ...

    @abstractmethod
    async def find_pending_by_customer_id(self, customer_id: str) -> Optional[Transaction]:
        """Most recently created PENDING transaction of the customer."""
        ...

    @abstractmethod
    async def update(self, transaction: Transaction) -> Transaction:
        """
        Persist the transaction if nobody else changed it since it was read.

        Raises:
            ConcurrentModificationError: stored version differs from
                transaction.version
        """
        ...

    @abstractmethod
    async def update_status(self, transaction_id: str, status: TransactionStatus) -> None: ...

    @abstractmethod
    async def find_all(self) -> List[Transaction]: ...


class DeliveryRepository(ABC):
    @abstractmethod
    async def create(self, delivery: Delivery) -> Delivery: ...

    @abstractmethod
    async def find_by_id(self, delivery_id: str) -> Optional[Delivery]: ...

    @abstractmethod
    async def find_by_transaction_id(self, transaction_id: str) -> Optional[Delivery]: ...

    @abstractmethod
    async def update(self, delivery: Delivery) -> Delivery: ...

    @abstractmethod
    async def find_all(self) -> List[Delivery]: ...
