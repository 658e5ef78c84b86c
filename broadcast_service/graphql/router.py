# broadcast_service/graphql/router.py
from strawberry.fastapi import GraphQLRouter, BaseContext
from fastapi import Depends
from sqlalchemy.orm import Session

from .schema import schema
from ..api.deps import get_db, get_current_user_optional
from ..schemas.token import TokenPayload


class CustomContext(BaseContext):
    def __init__(self, db: Session, user: dict | None = None):
        super().__init__()
        self.db = db
        self.user = user


def get_context(
    db: Session = Depends(get_db),
    current_user: TokenPayload | None = Depends(get_current_user_optional),
) -> CustomContext:
    """Builds the resolver context; `user` stays None for missing or invalid tokens."""
    user = current_user.model_dump(by_alias=True) if current_user else None
    return CustomContext(db=db, user=user)


graphql_router = GraphQLRouter(
    schema,
    context_getter=get_context,
)
