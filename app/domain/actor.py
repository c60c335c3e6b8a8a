"""Authenticated caller identity passed into domain operations."""

from dataclasses import dataclass
from uuid import UUID

CUSTOMER = "customer"
CHEF = "chef"


@dataclass(frozen=True)
class Actor:
    """The caller's id and role, as vouched for by the auth layer."""

    id: UUID
    role: str  # customer, chef

    @property
    def is_customer(self) -> bool:
        return self.role == CUSTOMER

    @property
    def is_chef(self) -> bool:
        return self.role == CHEF
