from __future__ import annotations

import os
from typing import Optional

from fastapi import Header, HTTPException, status


def require_api_key(
    authorization: Optional[str] = Header(default=None),
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
) -> None:
    """Guard for the /v1 admin routes (reload, stats, resolve).

    The art page and /health stay public. With API_KEY set, an admin call
    must send the key as `X-API-Key` or as `Authorization: Bearer <key>`;
    without it the admin routes are open, which suits a loopback-only bind.
    """

    expected = (os.getenv("API_KEY", "") or "").strip()
    if not expected:
        return

    presented = []
    if x_api_key:
        presented.append(x_api_key.strip())
    if authorization:
        scheme, _, token = authorization.strip().partition(" ")
        if scheme.lower() == "bearer":
            presented.append(token.strip())

    if expected in presented:
        return

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Admin route needs a valid API key (X-API-Key or Bearer token)",
    )
