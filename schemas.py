"""
Database Schemas for the B2B ordering platform

Each Pydantic model represents a MongoDB collection. The collection name is the lowercase of the class name.

- User -> "user"
- Product -> "product"
- Cart -> "cart"
- Order -> "order"
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class Role(str, Enum):
    SUPPLIER = "supplier"
    CLIENT = "client"


class OrderStatus(str, Enum):
    PENDING = "pending"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class User(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(..., description="Display name")
    email: EmailStr = Field(..., description="Email address")
    password_hash: str = Field(..., description="Hashed password")
    role: Role = Field(..., description="supplier or client")


class Identity(BaseModel):
    """The authenticated actor, as supplied by the identity collaborator"""
    id: str
    name: str
    role: Role


class Product(BaseModel):
    id: Optional[str] = None
    name: str = Field(..., description="Product name")
    description: str = Field("", description="Product description")
    price: float = Field(..., ge=0, description="Unit price")
    stock_quantity: int = Field(0, ge=0, description="Units in stock")
    moq: int = Field(1, ge=1, description="Minimum order quantity")
    supplier_id: str = Field(..., description="Owning supplier user id")
    supplier_name: str = Field("", description="Owning supplier display name")
    image_url: Optional[str] = Field(None, description="Image URL")

    @field_validator("moq", mode="before")
    @classmethod
    def default_moq(cls, v):
        # Older product documents carry no moq, or a null one
        return 1 if v is None else v


class CartLine(BaseModel):
    product: Product
    quantity: int = Field(..., ge=1)


class Cart(BaseModel):
    items: List[CartLine] = []

    @property
    def supplier_id(self) -> Optional[str]:
        return self.items[0].product.supplier_id if self.items else None

    @property
    def total(self) -> float:
        return round(sum(line.product.price * line.quantity for line in self.items), 2)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.items)

    def find(self, product_id: str) -> Optional[CartLine]:
        for line in self.items:
            if line.product.id == product_id:
                return line
        return None


class OrderItem(BaseModel):
    product_id: str
    name: str
    price: float
    quantity: int


class Order(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    id: Optional[str] = None
    client_id: str
    client_name: str
    supplier_id: str
    items: List[OrderItem]
    total: float
    status: OrderStatus = Field(OrderStatus.PENDING, validate_default=True, description="Fulfillment status")
    created_at: Optional[datetime] = None


class Notice(BaseModel):
    title: str
    description: str
    severity: Severity = Severity.INFO
