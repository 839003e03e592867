# backend/app/api/dependencies/auth.py
"""
Authentication dependencies.

Routes depend on ``get_current_user_id``; the identity itself is owned by
an external service and only the verified ``sub`` claim is used here.
"""

from fastapi import Depends

from ...auth import get_current_user_id as auth_get_current_user_id


async def get_current_user_id(user_id: str = Depends(auth_get_current_user_id)) -> str:
    """Authenticated payer / host id."""
    return user_id
