# broadcast_service/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from broadcast_service.api.v1.api import api_router
from broadcast_service.core.config import settings
from broadcast_service.core.limiter import limiter
from broadcast_service.graphql.router import graphql_router
from broadcast_service.scheduler import init_scheduler, shutdown_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Broadcast order service starting up...")
    if settings.SCHEDULER_ENABLED:
        init_scheduler()
    yield
    if settings.SCHEDULER_ENABLED:
        shutdown_scheduler()
    logger.info("Broadcast order service shutting down...")


app = FastAPI(
    title="Broadcast Order Microservice",
    version="1.0.0",
    description="""
        **Broadcast Order Service**

        Customers describe what they want in text, a voice note or photos and
        send it to up to three sellers at once. Each seller prices the request
        independently, and a submitted quote becomes a firm order.

        ## Features

        * **Broadcasts**: Fan one request out to several sellers with a shared deadline
        * **Seller Pricing**: Claim-and-price with exactly one winning submission per request
        * **Price History**: Pre-fill quotes from prices previously given to the same customer
        * **Expiry**: Periodic sweep of overdue requests and broadcasts

        ## Authentication

        Endpoints require JWT authentication via the `Authorization: Bearer <token>` header.
        Internal endpoints require the `X-Internal-Api-Key` header.
        """,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

origins = [
    "http://localhost:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")
app.include_router(graphql_router, prefix="/graphql")


@app.get("/")
def read_root():
    return {"status": "Broadcast Order Service is running"}
