"""
Acting identity passed explicitly into every write operation.

Authentication happens upstream; the engine only receives who is acting
and in which role.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .enums import RoleName
from .exceptions import AuthorizationError


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: RoleName = RoleName.STUDENT

    @property
    def is_trainer(self) -> bool:
        return self.role == RoleName.TRAINER

    @property
    def is_student(self) -> bool:
        return self.role == RoleName.STUDENT

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN


def require_identity(identity: Optional[Identity]) -> Identity:
    """Return ``identity`` or raise when the caller is anonymous."""
    if identity is None or not identity.user_id:
        raise AuthorizationError("Please sign in to continue", code="AUTHENTICATION_REQUIRED")
    return identity


def require_role(identity: Optional[Identity], *roles: RoleName) -> Identity:
    current = require_identity(identity)
    if current.role not in roles:
        raise AuthorizationError(
            "Your account role cannot perform this action",
            details={"role": current.role.value, "allowed": [r.value for r in roles]},
        )
    return current
