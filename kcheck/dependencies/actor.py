"""
Acting-user dependencies.

Authorization happens in front of this service; the caller identifies the
acting user with the ``X-User-Id`` header.
"""
from typing import Annotated

from fastapi import Header, HTTPException, status


async def get_actor_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """Get the acting user's id.

    Raises:
        HTTPException: 401 if the header is missing or blank.
    """
    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return x_user_id.strip()


async def get_optional_actor_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str | None:
    """Get the acting user's id if the header is present, otherwise None."""
    if x_user_id is None or not x_user_id.strip():
        return None
    return x_user_id.strip()
