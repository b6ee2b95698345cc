"""
Data Schemas for the Egg Shop

Each collection is persisted as one JSON blob under its own key. Field names
are camelCase on disk and on the wire, snake_case in Python; both are accepted
on input.

Collections:
- products  (list of Product, keyed by id)
- orders    (list of Order, newest first, keyed by id)
- customers (list of Customer, keyed by phone)
- session   (a single Session)
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def new_id() -> str:
    return uuid4().hex


class ShopModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_doc(self, **kwargs) -> dict:
        return self.model_dump(mode="json", by_alias=True, **kwargs)


class ProductType(str, Enum):
    WHITE = "Branco"
    RED = "Vermelho"
    FREE_RANGE = "Caipira"
    ORGANIC = "Orgânico"
    QUAIL = "Codorna"


class OrderStatus(str, Enum):
    PENDING = "Pendente"
    PREPARING = "Separando"
    DELIVERING = "Saiu para entrega"
    COMPLETED = "Entregue"
    CANCELLED = "Cancelado"


class PaymentMethod(str, Enum):
    PIX = "PIX"
    CASH = "Dinheiro"
    CARD = "Cartão na Entrega"


class RecurrenceType(str, Enum):
    NONE = "Apenas uma vez"
    WEEKLY = "Semanal"
    BIWEEKLY = "Quinzenal"
    MONTHLY = "Mensal"


class DeliveryPeriod(str, Enum):
    MORNING = "Manhã (08:00 - 12:00)"
    AFTERNOON = "Tarde (13:00 - 18:00)"


class UserRole(str, Enum):
    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"


class Product(ShopModel):
    """Egg package sold in the catalog"""
    id: str = Field(default_factory=new_id, description="Unique product id")
    name: str = Field(..., description="Product name")
    type: ProductType = Field(..., description="Egg type, display label only")
    description: str = Field("", description="Short description")
    quantity_per_package: int = Field(..., gt=0, description="Eggs per package")
    price: float = Field(..., ge=0, description="Package price")
    image_url: str = Field("", description="Image URL")
    active: bool = Field(True, description="Inactive products are hidden from the catalog")
    is_promo: bool = Field(False, description="Shows a promo badge")


class CartItem(Product):
    cart_quantity: int = Field(1, ge=1)


class Address(ShopModel):
    street: str
    number: str
    neighborhood: str
    city: str
    zip_code: str = ""
    reference: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None


class Customer(ShopModel):
    id: str = Field(default_factory=new_id, description="Assigned at first login")
    name: str = ""
    phone: str = Field(..., description="WhatsApp number, the lookup key")
    address: Optional[Address] = Field(None, description="Last used delivery address")
    total_orders: int = Field(0, ge=0)
    last_order_date: Optional[datetime] = None


class Order(ShopModel):
    id: str = Field(default_factory=new_id)
    customer_id: str
    customer_name: str
    customer_phone: str
    items: List[CartItem]
    total: float = Field(..., ge=0)
    delivery_fee: float = Field(..., ge=0)
    address: Address
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime
    payment_method: PaymentMethod = PaymentMethod.CASH
    change_for: Optional[str] = Field(None, description="Cash payments: bill the customer pays with")
    recurrence: RecurrenceType = RecurrenceType.NONE
    delivery_period: DeliveryPeriod = DeliveryPeriod.MORNING


class CheckoutInput(ShopModel):
    address: Address
    payment_method: PaymentMethod = PaymentMethod.CASH
    change_for: Optional[str] = None
    recurrence: RecurrenceType = RecurrenceType.NONE
    delivery_period: DeliveryPeriod = DeliveryPeriod.MORNING


class AdminIdentity(ShopModel):
    name: str
    id: str = "admin"


class CustomerSession(ShopModel):
    role: Literal[UserRole.CUSTOMER] = UserRole.CUSTOMER
    data: Customer


class AdminSession(ShopModel):
    role: Literal[UserRole.ADMIN] = UserRole.ADMIN
    data: AdminIdentity


Session = Annotated[Union[CustomerSession, AdminSession], Field(discriminator="role")]
