"""Pydantic request/response schemas for the development cart service.

These mirror the storefront API's JSON contract (camelCase on the wire).
"""

from pydantic import BaseModel, ConfigDict, Field


class AddLineRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId", min_length=1)
    quantity: int = Field(ge=1, default=1)


class UpdateLineRequest(BaseModel):
    quantity: int


class SyncLine(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId", min_length=1)
    quantity: int = Field(ge=1)


class SyncRequest(BaseModel):
    items: list[SyncLine] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [
                        {"productId": "prod-001", "quantity": 2},
                        {"productId": "prod-002", "quantity": 1},
                    ]
                }
            ]
        }
    }


class ProductPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    slug: str | None = None
    name: str | None = None
    price: float = 0.0
    stock_quantity: int = Field(alias="stockQuantity", default=0)
    status: str = "active"


class CartItemPayload(BaseModel):
    product: ProductPayload
    quantity: int


class CartPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str | None = Field(alias="_id", default=None)
    items: list[CartItemPayload] = Field(default_factory=list)


class CartResponse(BaseModel):
    success: bool = True
    cart: CartPayload


class ProductResponse(BaseModel):
    success: bool = True
    product: ProductPayload
