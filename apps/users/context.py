"""Explicit caller context handed to service-layer functions.

Views resolve ``request.user`` once into an immutable ``Caller`` and pass
it down; services never read ambient request state.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.exceptions import Unauthorized

from .models import CustomUser


@dataclass(frozen=True)
class Caller:
    user_id: int
    role: str

    @classmethod
    def from_user(cls, user) -> "Caller":
        if user is None or not getattr(user, "is_authenticated", False):
            raise Unauthorized()
        role = CustomUser.RoleChoices.ADMIN if (user.is_superuser or user.is_staff) else user.role
        return cls(user_id=user.pk, role=role)

    @classmethod
    def from_request(cls, request) -> "Caller":
        return cls.from_user(getattr(request, "user", None))

    @property
    def is_admin(self) -> bool:
        return self.role == CustomUser.RoleChoices.ADMIN

    @property
    def is_provider(self) -> bool:
        return self.role == CustomUser.RoleChoices.PROVIDER
