"""
Authentication router exposing the identity provider's current session.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from routers.auth_scope import AuthContext, get_auth_context

router = APIRouter()


class CurrentUserResponse(BaseModel):
    user_id: str


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user(auth: AuthContext = Depends(get_auth_context)):
    """Return the principal id of the current session."""
    return CurrentUserResponse(user_id=auth.user_id)
