# broadcast_service/schemas/token.py
from pydantic import BaseModel, Field
from typing import Optional


class TokenPayload(BaseModel):
    sub: str  # user id; the customer id for customer-facing calls
    # Parses 'sellerId' from the token for users operating a store
    seller_id: Optional[str] = Field(default=None, alias="sellerId")
    exp: int

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }
