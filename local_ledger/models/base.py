"""
Base pieces shared by every ledger model.

DESIGN DECISION: Python attributes are snake_case while the persisted
document uses camelCase keys. The alias generator bridges the two so the
export/import format never leaks into engine code.
"""

from datetime import datetime, timezone
from typing import TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def new_id() -> str:
    """Collision-resistant identifier for entities and sub-entities."""
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LedgerModel(BaseModel):
    """
    Base for every persisted record.

    Frozen, so a snapshot handed out by the store cannot be edited in place.
    Either spelling of a field name is accepted on input.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
    )


ModelT = TypeVar("ModelT", bound=LedgerModel)


def revise(model: ModelT, **changes) -> ModelT:
    """
    Return a validated copy of `model` with `changes` applied.

    Unlike `model_copy(update=...)` this re-runs validation, so computed
    and normalized fields stay consistent with the new values.
    """
    return type(model)(**{**dict(model), **changes})
