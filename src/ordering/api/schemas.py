"""Pydantic request/response schemas for the Storefront API.

These are external contracts (anti-corruption layer) — separate from the
cart store and checkout types they are translated into.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Session Schemas
# ---------------------------------------------------------------------------
class SessionResponse(BaseModel):
    session_id: str
    user_id: str | None = None


class LoginRequest(BaseModel):
    user_id: str = Field(min_length=1)
    profile: dict | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "user_id": "42",
                    "profile": {"email": "buyer@shoes.example", "companyName": "Shoe Hub"},
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddLineRequest(BaseModel):
    product_id: int
    product_code: str
    product_name: str
    size: int
    quantity: int = 1
    unit_price: float
    image_url: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": 1,
                    "product_code": "RUN-001",
                    "product_name": "Runner",
                    "size": 42,
                    "quantity": 2,
                    "unit_price": 100.0,
                }
            ]
        }
    }


class SizeQuantitySchema(BaseModel):
    size: int
    quantity: int
    unit_price: float


class QuickOrderRequest(BaseModel):
    product_id: int
    product_code: str
    product_name: str
    sizes: list[SizeQuantitySchema] = Field(min_length=1)
    image_url: str | None = None


class SetQuantityRequest(BaseModel):
    # Zero or less removes the line
    quantity: int


# ---------------------------------------------------------------------------
# Checkout Request Schemas
# ---------------------------------------------------------------------------
class CustomerInfoSchema(BaseModel):
    email: str = ""
    contact_name: str = ""
    phone: str = ""
    company_name: str = ""
    vat_number: str = ""


class CheckoutRequest(BaseModel):
    customer_info: CustomerInfoSchema | None = None


class ConflictSchema(BaseModel):
    product_id: int
    size: int
    requested_quantity: int
    available_quantity: int


class ResolveConflictsRequest(BaseModel):
    # None resolves every conflict of the last attempt
    conflicts: list[ConflictSchema] | None = None


# ---------------------------------------------------------------------------
# Fake Collaborator Schemas (non-production)
# ---------------------------------------------------------------------------
class StockLevelRequest(BaseModel):
    product_id: int
    size: int
    available: int = Field(ge=0)


class ConfigureServiceRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Service unavailable"


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CartResponse(BaseModel):
    owner: str | None = None
    items: list[dict]
    grouped: list[dict]
    summary: dict
    total_item_count: int
    total_price: float
    is_empty: bool


class CheckoutResponse(BaseModel):
    status: str
    confirmation: dict | None = None
    conflicts: list[dict] = Field(default_factory=list)
    error: str | None = None


class NotificationsResponse(BaseModel):
    messages: list[dict]


class StatusResponse(BaseModel):
    status: str = "ok"
