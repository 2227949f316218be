"""Caller identity forwarded by the authenticating gateway.

Credentials are verified upstream; this service only reads the identity
headers the gateway sets on every proxied request.
"""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException

ADMIN_ROLE = "admin"


async def get_current_participant_id(
    x_participant_id: str | None = Header(default=None),
) -> str:
    """Authenticated participant id, 401 when the gateway sent none."""
    if not x_participant_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return x_participant_id


async def require_admin(
    participant_id: str = Depends(get_current_participant_id),
    x_participant_role: str | None = Header(default=None),
) -> str:
    """Administrator id, 403 for any other role."""
    if (x_participant_role or "").lower() != ADMIN_ROLE:
        raise HTTPException(status_code=403, detail="Administrator access required")
    return participant_id
