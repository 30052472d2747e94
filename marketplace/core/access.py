"""
Marketplace API — Roles, callers and the capability check

Every workflow and catalog entry point authorizes through check_capability()
instead of inline role comparisons.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from marketplace.core.errors import Unauthorized


class Role(str, Enum):
    CUSTOMER = "customer"
    COOK = "cook"
    ADMIN = "admin"


@dataclass(frozen=True)
class Caller:
    """Authenticated identity, built from the JWT claims of the request."""
    user_id: int
    role: Role
    display_name: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def check_capability(
    caller: Caller,
    roles: Iterable[Role],
    *,
    customer_id: int | None = None,
    operator_id: int | None = None,
    message: str = "Insufficient permissions",
) -> None:
    """
    Raise Unauthorized unless the caller holds one of `roles` and, for
    resource-scoped checks, owns the resource:
      - customers must match `customer_id` when one is given
      - cooks must match `operator_id` (the restaurant's cook) when one is given
      - administrators pass every ownership check
    """
    if caller.role not in set(roles):
        raise Unauthorized(message)

    if caller.role is Role.CUSTOMER and customer_id is not None and customer_id != caller.user_id:
        raise Unauthorized(message)

    if caller.role is Role.COOK and operator_id is not None and operator_id != caller.user_id:
        raise Unauthorized(message)
