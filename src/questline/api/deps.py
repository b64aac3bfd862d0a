"""Shared dependency providers for FastAPI routers."""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Header, HTTPException, status

from questline.config import API_ADMIN_TOKEN
from questline.infra.db import get_db
from questline.services.container import Repositories, build_repositories

repos: Repositories = build_repositories(get_db())

ADMIN_TOKEN: Optional[str] = API_ADMIN_TOKEN or None


async def require_admin(
    x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
) -> None:
    """Enforce that an admin token header is present and matches the configured secret."""
    token = ADMIN_TOKEN
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin token is not configured",
        )
    if not x_admin_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing admin token",
        )
    if not secrets.compare_digest(x_admin_token, token):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin token",
        )
