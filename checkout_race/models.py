import json
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# DATA MODELS


class CheckoutRequest(BaseModel):
    """
    Body sent to POST /checkout

    Serialized with the camelCase keys the target expects:
    {"userId": ..., "productId": ..., "quantity": ...}
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: UUID = Field(..., alias="userId")
    product_id: UUID = Field(..., alias="productId")
    quantity: int = Field(..., gt=0, description="Units to reserve")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class CheckoutReply(BaseModel):
    """
    Fields of the target's JSON reply the harness looks at

    200: {"message": "Checkout successful", "order_id": ...}
         {"message": "Order already processed", "order_id": ..., "duplicate": true}
    400: {"error": "Not enough stock"}

    Fields keep whatever JSON type the target sent; callers compare
    against exact values, so a field of an odd type simply never matches.
    """
    model_config = ConfigDict(extra="ignore")

    message: Optional[Any] = None
    duplicate: Optional[Any] = None
    error: Optional[Any] = None
    order_id: Optional[Any] = None


def parse_reply(text: Optional[str]) -> Optional[CheckoutReply]:
    """
    Parse a response body, never raising

    Returns:
        CheckoutReply, or None if the body is empty, not JSON
        or not a JSON object
    """
    if not text:
        return None

    try:
        data = json.loads(text)
    except ValueError:
        return None

    if not isinstance(data, dict):
        return None

    return CheckoutReply.model_validate(data)
