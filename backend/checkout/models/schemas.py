"""
Pydantic Request/Response Models

Input validation for the HTTP surface and the views returned by the services.
All monetary values are currency units (COP); the gateway boundary converts
to cents separately.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, Literal
from pydantic import BaseModel, Field, field_validator


# ==================== Requests ====================

class CreateTransactionRequest(BaseModel):
    """Order for one product with customer and delivery details."""
    customer_email: str = Field(pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
    customer_full_name: str = Field(min_length=3, max_length=100)
    customer_phone: Optional[str] = Field(None, min_length=7, max_length=20)

    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)

    delivery_full_name: str = Field(min_length=3, max_length=100)
    delivery_phone: str = Field(min_length=7, max_length=20)
    delivery_address: str = Field(min_length=10, max_length=200)
    delivery_city: str = Field(min_length=3, max_length=50)
    delivery_state: str = Field(min_length=3, max_length=50)
    delivery_postal_code: Optional[str] = Field(None, max_length=10)

    model_config = {
        "json_schema_extra": {
            "example": {
                "customer_email": "ana@example.com",
                "customer_full_name": "Ana Gomez",
                "customer_phone": "3001234567",
                "product_id": "6345d34b-ca16-4374-804d-d58eb2439e25",
                "quantity": 1,
                "delivery_full_name": "Ana Gomez",
                "delivery_phone": "3001234567",
                "delivery_address": "Calle 123 # 45-67",
                "delivery_city": "Medellin",
                "delivery_state": "Antioquia",
                "delivery_postal_code": "050001",
            }
        }
    }


class CardData(BaseModel):
    """Raw card data. Never persisted and never logged unredacted."""
    number: str = Field(min_length=12, max_length=23)
    exp_month: str = Field(pattern=r"^\d{1,2}$")
    exp_year: str = Field(pattern=r"^\d{2}$")
    cvc: str = Field(pattern=r"^\d{3,4}$")
    card_holder: str = Field(min_length=3, max_length=100)

    @field_validator("number")
    @classmethod
    def strip_spaces(cls, value: str) -> str:
        """Remove spaces so '4242 4242 4242 4242' is accepted."""
        digits = "".join(value.split())
        if not digits.isdigit():
            raise ValueError("Card number must contain only digits")
        return digits

    def redacted(self) -> dict:
        return {
            "number": f"****{self.number[-4:]}",
            "exp_month": self.exp_month,
            "exp_year": self.exp_year,
            "cvc": "***",
            "card_holder": self.card_holder,
        }


class ProcessPaymentRequest(BaseModel):
    """Card submitted to pay a PENDING transaction."""
    card_number: str
    card_exp_month: str
    card_exp_year: str
    card_cvc: str
    card_holder: str

    def to_card(self) -> CardData:
        return CardData(
            number=self.card_number,
            exp_month=self.card_exp_month,
            exp_year=self.card_exp_year,
            cvc=self.card_cvc,
            card_holder=self.card_holder,
        )


# ==================== Responses ====================

class CreateTransactionResponse(BaseModel):
    transaction_id: str
    transaction_no: str
    status: str
    total_amount: Decimal


class ProcessPaymentResponse(BaseModel):
    transaction_id: str
    transaction_no: str
    status: Literal["APPROVED", "DECLINED"]
    total_amount: Decimal
    gateway_transaction_id: Optional[str] = None
    gateway_reference: Optional[str] = None
    card_brand: Optional[str] = None
    card_last_four: Optional[str] = None
    message: str


class ProductView(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    stock_quantity: int
    image_url: Optional[str] = None


class TransactionView(BaseModel):
    id: str
    transaction_no: str
    status: str
    quantity: int
    amount: Decimal
    base_fee: Decimal
    delivery_fee: Decimal
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime


class CustomerView(BaseModel):
    email: str
    full_name: str
    phone: Optional[str] = None


class ProductSummary(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    image_url: Optional[str] = None


class DeliveryView(BaseModel):
    full_name: str
    phone: str
    address: str
    city: str
    state: str
    postal_code: Optional[str] = None


class PaymentView(BaseModel):
    card_brand: str
    card_last_four: str
    gateway_transaction_id: str
    gateway_reference: str


class TransactionDetail(BaseModel):
    """Complete view of one transaction."""
    transaction: TransactionView
    customer: CustomerView
    product: ProductSummary
    delivery: DeliveryView
    payment: Optional[PaymentView] = None


# ---- Recovery flow (reduced view to resume a checkout) ----

class RecoveredTransactionSummary(BaseModel):
    id: str
    transaction_no: str
    status: str
    total_amount: Decimal
    created_at: datetime


class RecoveredProduct(BaseModel):
    name: str
    price: Decimal
    image_url: Optional[str] = None


class RecoveredDelivery(BaseModel):
    city: str
    state: str
    address: str


class RecoveredTransaction(BaseModel):
    transaction: RecoveredTransactionSummary
    product: RecoveredProduct
    delivery: RecoveredDelivery
