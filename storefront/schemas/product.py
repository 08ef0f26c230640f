from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StringConstraints
from pydantic.alias_generators import to_camel

from storefront.core.validation import BLANK_AS_NONE, NOT_BOOL, REQUIRED


class ProductSort(str, Enum):
    """Allowed sort keys for product listing."""
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"


class Product(BaseModel):
    """Catalog entry as stored in the products file."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    id: StrictInt
    name: str = ""
    description: str = ""
    packaging: str = ""
    category: str = ""
    price: float = 0.0
    image: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# =============================================================================
# REQUEST MODELS
# =============================================================================

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1), REQUIRED]
NonEmptyText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Price = Annotated[float, Field(ge=0, allow_inf_nan=False), NOT_BOOL]
Bound = Annotated[float, Field(allow_inf_nan=False)]


class ProductCreate(BaseModel):
    """Body of ``POST /api/products``. Field order is error order."""

    model_config = ConfigDict(extra="ignore")

    name: RequiredText
    description: RequiredText
    category: RequiredText
    packaging: RequiredText
    price: Price
    image: Annotated[Optional[str], BLANK_AS_NONE] = None


class ProductUpdate(BaseModel):
    """Body of ``PUT /api/products/{id}``; every field optional, none blank."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[NonEmptyText] = None
    description: Optional[NonEmptyText] = None
    category: Optional[NonEmptyText] = None
    packaging: Optional[NonEmptyText] = None
    price: Optional[Price] = None
    image: Optional[str] = None

    def changes(self) -> dict:
        """Fields the client sent with a value."""
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class PriceBounds(BaseModel):
    """``minPrice`` / ``maxPrice`` listing filters."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    min_price: Annotated[Optional[Bound], BLANK_AS_NONE] = None
    max_price: Annotated[Optional[Bound], BLANK_AS_NONE] = None


class ProductPath(BaseModel):
    id: int
