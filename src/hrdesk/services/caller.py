"""Explicit caller identity passed into every service call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from hrdesk.exceptions import PermissionDenied


@dataclass(frozen=True)
class Caller:
    """Claims of the authenticated caller (taken from the bearer token)."""

    id: int
    role: str
    email: str | None = None

    @property
    def is_manager(self) -> bool:
        return self.role == "manager"

    def require_manager(self) -> None:
        if not self.is_manager:
            raise PermissionDenied("Manager role required", caller_id=self.id)

    def require_self_or_manager(self, employee_id: int) -> None:
        if not self.is_manager and self.id != employee_id:
            raise PermissionDenied(
                "Employees may only access their own records",
                caller_id=self.id,
                employee_id=employee_id,
            )

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> Caller:
        """Build from decoded token claims (``id``, ``role``, ``email``)."""
        return cls(id=int(claims["id"]), role=str(claims["role"]), email=claims.get("email"))

    @classmethod
    def system(cls) -> Caller:
        """Identity used by the monthly trigger and admin CLI."""
        return cls(id=0, role="manager", email=None)

    def __str__(self) -> str:
        return f"{self.role}:{self.id}"
