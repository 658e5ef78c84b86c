# broadcast_service/graphql/schema.py

import strawberry
from .queries import Query

schema = strawberry.federation.Schema(
    query=Query,
)
