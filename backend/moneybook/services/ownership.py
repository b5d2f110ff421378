"""
Resource ownership lookup.

Each resource type registers how to find its owner column; the
``require_ownership`` dependency consults this registry so new resource
types need no changes at call sites.
"""

from typing import Dict, NamedTuple, Optional

from sqlalchemy.orm import Session

from moneybook.exceptions import ForbiddenError, NotFoundError
from moneybook.models import Category, Transaction


class OwnerResolver(NamedTuple):
    label: str
    model: type
    owner_column: str


OWNER_RESOLVERS: Dict[str, OwnerResolver] = {}


def register_resource(resource_type: str, model: type, owner_column: str = "user_id",
                      label: Optional[str] = None) -> None:
    OWNER_RESOLVERS[resource_type] = OwnerResolver(
        label=label or resource_type.capitalize(),
        model=model,
        owner_column=owner_column,
    )


register_resource("transaction", Transaction)
register_resource("category", Category)


def authorize_ownership(db: Session, user_id: int, resource_type: str, resource_id: int) -> None:
    """
    Raise NotFoundError when the resource does not exist and ForbiddenError
    when it belongs to someone else.
    """
    resolver = OWNER_RESOLVERS.get(resource_type)
    if resolver is None:
        raise ValueError(f"Unknown resource type: {resource_type}")

    owner_col = getattr(resolver.model, resolver.owner_column)
    owner_id = db.query(owner_col).filter(resolver.model.id == resource_id).scalar()

    if owner_id is None:
        raise NotFoundError(f"{resolver.label} not found")
    if owner_id != user_id:
        raise ForbiddenError()
