"""
Database Schemas

Pydantic models for the documents kept in the catalog's MongoDB collections
and for the edit operations applied to products.

Collections:
- Product -> "products"
- Order -> "orders"
- Category -> "category" (a single document holding every name)
- Coupon -> "coupons"

Numeric product fields accept text as well as numbers so a draft can hold
half-filled values; they are normalized to numbers before being stored.
"""
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# ---------- Catalog Schemas ----------

SizeLabel = Literal["XS", "S", "M", "L", "XL", "XXL", "XXXL"]
SIZE_LABELS = ("XS", "S", "M", "L", "XL", "XXL", "XXXL")

Number = Union[float, str]
Count = Union[int, str]


class SizeStock(BaseModel):
    inventory: Count = Field("", description="Units in stock; '' until filled in")
    price: Number = Field("", description="Price for this size; '' until filled in")


class ColorVariant(BaseModel):
    color_name: str = ""
    hex_code: str = Field("", description="Swatch colour, e.g. '#FF0000'")
    images: List[str] = Field(default_factory=list, description="Retrieval URLs")
    sizes_inventory: Dict[SizeLabel, SizeStock] = Field(
        default_factory=dict, description="Only sizes the merchant carries"
    )


class Dimensions(BaseModel):
    length: Number = ""
    width: Number = ""
    height: Number = ""


class Product(BaseModel):
    id: Optional[str] = Field(None, description="Document key, set by the repository")
    name: str = ""
    description: str = ""
    price: Number = ""
    sku: str = ""
    brand: str = ""
    weight: Optional[Number] = None
    date_added: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list, description="Category names")
    dimensions: Dimensions = Field(default_factory=Dimensions)
    colors: List[ColorVariant] = Field(default_factory=list)
    version: int = Field(0, ge=0, description="Bumped on every committed write")


class StagedFile(BaseModel):
    """Raw upload waiting to be turned into a retrieval URL."""
    filename: str
    content: bytes
    content_type: Optional[str] = None


# ---------- Edit Operations ----------

class SetField(BaseModel):
    op: Literal["set_field"] = "set_field"
    path: str
    value: Any = None


class AddVariant(BaseModel):
    op: Literal["add_variant"] = "add_variant"


class RemoveVariant(BaseModel):
    op: Literal["remove_variant"] = "remove_variant"
    index: int


class SetVariantField(BaseModel):
    op: Literal["set_variant_field"] = "set_variant_field"
    index: int
    field: Literal["color_name", "hex_code"]
    value: str


class EnableSize(BaseModel):
    op: Literal["enable_size"] = "enable_size"
    index: int
    size: SizeLabel


class DisableSize(BaseModel):
    op: Literal["disable_size"] = "disable_size"
    index: int
    size: SizeLabel


class SetSizeField(BaseModel):
    op: Literal["set_size_field"] = "set_size_field"
    index: int
    size: SizeLabel
    field: Literal["inventory", "price"]
    value: Union[int, float, str]


class AttachImages(BaseModel):
    op: Literal["attach_images"] = "attach_images"
    index: int
    files: List[StagedFile] = Field(default_factory=list)


# Edits that can travel as JSON; image uploads come in as multipart instead.
JsonEdit = Annotated[
    Union[SetField, AddVariant, RemoveVariant, SetVariantField, EnableSize, DisableSize, SetSizeField],
    Field(discriminator="op"),
]

Edit = Annotated[
    Union[
        SetField,
        AddVariant,
        RemoveVariant,
        SetVariantField,
        EnableSize,
        DisableSize,
        SetSizeField,
        AttachImages,
    ],
    Field(discriminator="op"),
]


# ---------- Category / Coupon Schemas ----------

class Category(BaseModel):
    id: Optional[str] = None
    name: List[str] = Field(default_factory=list, description="Ordered category names")


class Coupon(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    code: str
    discount: float = Field(..., ge=0, le=100, description="Percent off")
    valid_until: date = Field(..., alias="validUntil")


# ---------- Order Schemas ----------

class DeliveryStatus(str, Enum):
    PROCESSING = "Processing"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class OrderItem(BaseModel):
    """Copy of the product as it was when the order was placed."""
    product_id: Optional[str] = None
    name: str = ""
    description: str = ""
    price: Number = ""
    brand: str = ""
    quantity: int = Field(1, ge=1)
    colors: List[ColorVariant] = Field(default_factory=list)
    sizes_inventory: Dict[SizeLabel, SizeStock] = Field(default_factory=dict)
    dimensions: Optional[Dimensions] = None
    images: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


class Order(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    name: str = ""
    email: Optional[str] = None
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    delivery_address: Optional[str] = Field(None, alias="deliveryAddress")
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = Field(None, alias="zipCode")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    total_price: Optional[Number] = Field(None, alias="totalPrice")
    # Older orders carry free text here, newer ones a DeliveryStatus value.
    delivery_status: Optional[str] = Field(None, alias="deliveryStatus")
    items: List[OrderItem] = Field(default_factory=list)


class OrderSummary(BaseModel):
    id: str
    name: str = ""
    total_price: Optional[Number] = None
    delivery_status: Optional[str] = None
    created_at: Optional[datetime] = None
    item_count: int = 0
