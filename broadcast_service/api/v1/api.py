# broadcast_service/api/v1/api.py

from fastapi import APIRouter
from broadcast_service.api.v1.endpoints import (
    customer_broadcasts,
    seller_pricing,
    internals,
)

# This is the main router for the v1 API.
api_router = APIRouter()

api_router.include_router(customer_broadcasts.router)
api_router.include_router(seller_pricing.router)
api_router.include_router(internals.router)
