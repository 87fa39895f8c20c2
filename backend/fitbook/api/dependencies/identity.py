# backend/fitbook/api/dependencies/identity.py
"""
Acting identity from the upstream auth gateway.

The gateway authenticates the caller and forwards ``X-User-Id`` and
``X-User-Role``. A request without them is anonymous; services reject
anonymous writes themselves.
"""

from typing import Optional

from fastapi import Header

from ...core.enums import RoleName
from ...core.exceptions import AuthorizationError
from ...core.identity import Identity


def get_identity(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Optional[Identity]:
    if not x_user_id:
        return None
    try:
        role = RoleName((x_user_role or RoleName.STUDENT.value).strip().lower())
    except ValueError:
        raise AuthorizationError(
            "Unknown role", code="UNKNOWN_ROLE", details={"role": x_user_role}
        ).to_http_exception()
    return Identity(user_id=x_user_id.strip(), role=role)
