"""
Checkout Domain Entities

Self-validating records for Customer, Product, Delivery and Transaction.
Every entity validates on construction and on every assignment; a violation
raises EntityValidationError with a stable message. Callers that want to
handle bad data without unwinding use Entity.create(), which returns a Result.

Transaction also carries the payment state machine:

    PENDING ──approve()──────> APPROVED
        ├────decline()───────> DECLINED
        └────mark_as_error()─> ERROR

Every transition requires the current status to be PENDING.
"""
import re
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, Any, Dict

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..exceptions import EntityValidationError, InvalidStateTransitionError, InsufficientStockError
from .result import Result

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
TOTAL_TOLERANCE = Decimal("0.01")


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form the DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _new_id() -> str:
    return str(uuid.uuid4())


def generate_transaction_no(now: Optional[datetime] = None) -> str:
    """Human-readable transaction number: TXN-<yyyymmdd>-<epoch ms>-<suffix>."""
    now = now or datetime.now(timezone.utc)
    epoch_ms = int(now.timestamp() * 1000)
    return f"TXN-{now:%Y%m%d}-{epoch_ms}-{uuid.uuid4().hex[:4].upper()}"


def _first_error_message(exc: ValidationError) -> str:
    """Pull the original ValueError text out of a pydantic ValidationError."""
    error = exc.errors()[0]
    original = error.get("ctx", {}).get("error")
    if original is not None:
        return str(original)
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error['msg']}" if location else error["msg"]


def _require_text(value: Optional[str], label: str, min_length: int = 1) -> str:
    if value is None or not value.strip():
        raise ValueError(f"{label} is required")
    if len(value.strip()) < min_length:
        raise ValueError(f"{label} must be at least {min_length} characters")
    return value


class Entity(BaseModel):
    """Base for all domain entities."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    id: str = Field(default_factory=_new_id)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise EntityValidationError(_first_error_message(exc)) from exc

    def __setattr__(self, name: str, value: Any):
        try:
            super().__setattr__(name, value)
        except ValidationError as exc:
            raise EntityValidationError(_first_error_message(exc)) from exc

    @classmethod
    def create(cls, **data: Any) -> Result:
        """Construct the entity, returning a failed Result instead of raising."""
        try:
            return Result.ok(cls(**data))
        except EntityValidationError as exc:
            return Result.fail(str(exc))

    def touch(self) -> None:
        self.updated_at = utcnow()


# ============================================================================
# Customer
# ============================================================================

class Customer(Entity):
    """Buyer identified by a unique email."""

    email: str
    full_name: str
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        _require_text(value, "Customer email")
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Customer email is invalid")
        return value

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, value: str) -> str:
        return _require_text(value, "Customer full name", min_length=3)

    def update_info(self, full_name: Optional[str], phone: Optional[str] = None) -> None:
        """
        Update contact details in place.

        Names shorter than 3 characters are ignored and the stored name kept.
        """
        if full_name and len(full_name.strip()) >= 3:
            self.full_name = full_name
        if phone is not None:
            self.phone = phone
        self.touch()

    def differs_from(self, full_name: str, phone: Optional[str]) -> bool:
        return full_name != self.full_name or phone != self.phone


# ============================================================================
# Product
# ============================================================================

class Product(Entity):
    """Catalog product with its stock ledger."""

    name: str
    description: Optional[str] = None
    price: Decimal
    stock_quantity: int
    image_url: Optional[str] = None
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _require_text(value, "Product name")

    @field_validator("price")
    @classmethod
    def validate_price(cls, value: Decimal) -> Decimal:
        if value < 0:
            raise ValueError("Product price cannot be negative")
        return value

    @field_validator("stock_quantity")
    @classmethod
    def validate_stock(cls, value: int) -> int:
        if value < 0:
            raise ValueError("Product stock quantity cannot be negative")
        return value

    def is_available(self) -> bool:
        return self.is_active and self.stock_quantity > 0

    def has_stock(self, quantity: int) -> bool:
        return self.stock_quantity >= quantity

    def decrease_stock(self, quantity: int = 1) -> None:
        """
        Remove units from stock after an approved sale.

        Raises:
            EntityValidationError: quantity is not positive
            InsufficientStockError: fewer units available than requested;
                stock is left unchanged
        """
        if quantity <= 0:
            raise EntityValidationError("Quantity must be greater than 0")
        if not self.has_stock(quantity):
            raise InsufficientStockError(self.stock_quantity, quantity)
        self.stock_quantity -= quantity
        self.touch()

    def increase_stock(self, quantity: int = 1) -> None:
        """Return units to stock (restock, returns)."""
        if quantity <= 0:
            raise EntityValidationError("Quantity must be greater than 0")
        self.stock_quantity += quantity
        self.touch()

    def activate(self) -> None:
        self.is_active = True
        self.touch()

    def deactivate(self) -> None:
        self.is_active = False
        self.touch()

    def update_info(
        self,
        name: Optional[str] = None,
        description: Optional[str] = None,
        price: Optional[Decimal] = None,
        image_url: Optional[str] = None
    ) -> None:
        """Update catalog fields; blank names and negative prices are ignored."""
        if name is not None and name.strip():
            self.name = name
        if description is not None:
            self.description = description
        if price is not None and price >= 0:
            self.price = price
        if image_url is not None:
            self.image_url = image_url
        self.touch()


# ============================================================================
# Delivery
# ============================================================================

class Delivery(Entity):
    """Shipping details, linked 1:1 to a transaction."""

    transaction_id: str
    full_name: str
    phone: str
    address: str
    city: str
    state: str
    postal_code: Optional[str] = None

    @field_validator("transaction_id")
    @classmethod
    def validate_transaction_id(cls, value: str) -> str:
        return _require_text(value, "Transaction ID")

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, value: str) -> str:
        return _require_text(value, "Delivery full name", min_length=3)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: str) -> str:
        return _require_text(value, "Delivery phone")

    @field_validator("address")
    @classmethod
    def validate_address(cls, value: str) -> str:
        return _require_text(value, "Delivery address", min_length=10)

    @field_validator("city")
    @classmethod
    def validate_city(cls, value: str) -> str:
        return _require_text(value, "Delivery city")

    @field_validator("state")
    @classmethod
    def validate_state(cls, value: str) -> str:
        return _require_text(value, "Delivery state")


# ============================================================================
# Transaction
# ============================================================================

class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DECLINED = "DECLINED"
    ERROR = "ERROR"


TERMINAL_STATUSES = frozenset({
    TransactionStatus.APPROVED,
    TransactionStatus.DECLINED,
    TransactionStatus.ERROR,
})


class Transaction(Entity):
    """
    Order for a single product and its payment state.

    Invariants:
    - amount, fees and total are non-negative
    - total_amount == amount + base_fee + delivery_fee (within 0.01)
    - status leaves PENDING at most once
    """

    transaction_no: str = Field(default_factory=generate_transaction_no)
    product_id: str
    customer_id: str
    status: TransactionStatus = TransactionStatus.PENDING
    quantity: int = 1
    amount: Decimal
    base_fee: Decimal
    delivery_fee: Decimal
    total_amount: Decimal
    gateway_transaction_id: Optional[str] = None
    gateway_reference: Optional[str] = None
    card_brand: Optional[str] = None
    card_last_four: Optional[str] = None
    version: int = 1

    @field_validator("transaction_no")
    @classmethod
    def validate_transaction_no(cls, value: str) -> str:
        return _require_text(value, "Transaction number")

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Transaction quantity must be at least 1")
        return value

    @model_validator(mode="after")
    def validate_amounts(self):
        """Ensure amounts are non-negative and the total adds up."""
        for label, value in (
            ("Transaction amount", self.amount),
            ("Base fee", self.base_fee),
            ("Delivery fee", self.delivery_fee),
            ("Total amount", self.total_amount),
        ):
            if value < 0:
                raise ValueError(f"{label} cannot be negative")

        expected = self.amount + self.base_fee + self.delivery_fee
        if abs(self.total_amount - expected) > TOTAL_TOLERANCE:
            raise ValueError(
                f"Total amount mismatch. Expected: {expected}, Got: {self.total_amount}"
            )
        return self

    # ------------------------------------------------------------------
    # Status queries
    # ------------------------------------------------------------------

    def can_be_processed(self) -> bool:
        return self.status == TransactionStatus.PENDING

    def is_successful(self) -> bool:
        return self.status == TransactionStatus.APPROVED

    def is_failed(self) -> bool:
        return self.status in (TransactionStatus.DECLINED, TransactionStatus.ERROR)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _ensure_pending(self, action: str) -> None:
        if not self.can_be_processed():
            raise InvalidStateTransitionError(action, self.status.value)

    def approve(
        self,
        gateway_transaction_id: str,
        gateway_reference: str,
        card_brand: Optional[str] = None,
        card_last_four: Optional[str] = None
    ) -> None:
        """Mark as APPROVED and store the gateway references."""
        self._ensure_pending("approve")
        self.status = TransactionStatus.APPROVED
        self.gateway_transaction_id = gateway_transaction_id
        self.gateway_reference = gateway_reference
        self.card_brand = card_brand or None
        self.card_last_four = card_last_four or None
        self.touch()

    def decline(
        self,
        gateway_transaction_id: Optional[str] = None,
        gateway_reference: Optional[str] = None
    ) -> None:
        """Mark as DECLINED, keeping whatever references the gateway returned."""
        self._ensure_pending("decline")
        self.status = TransactionStatus.DECLINED
        self.gateway_transaction_id = gateway_transaction_id
        self.gateway_reference = gateway_reference
        self.touch()

    def mark_as_error(
        self,
        gateway_transaction_id: Optional[str] = None,
        gateway_reference: Optional[str] = None
    ) -> None:
        """Mark as ERROR, keeping whatever references the gateway returned."""
        self._ensure_pending("mark as error")
        self.status = TransactionStatus.ERROR
        self.gateway_transaction_id = gateway_transaction_id
        self.gateway_reference = gateway_reference
        self.touch()

    def update_payment_info(self, card_brand: str, card_last_four: str) -> None:
        self.card_brand = card_brand
        self.card_last_four = card_last_four
        self.touch()

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "transaction_no": self.transaction_no,
            "status": self.status.value,
            "total_amount": self.total_amount,
            "created_at": self.created_at,
        }
