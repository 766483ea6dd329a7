from __future__ import annotations
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from fitchallenge.deps import get_users
from fitchallenge.models.user import User
from fitchallenge.security import TokenError, token_subject
from fitchallenge.services.users import UserDirectory

# auto_error=False: anonymous callers reach the handler, which reports NotAuthenticated
security = HTTPBearer(auto_error=False)

async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    users: UserDirectory = Depends(get_users),
) -> User | None:
    if credentials is None:
        return None
    try:
        user_id = token_subject(credentials.credentials, "access")
    except TokenError:
        return None
    return await users.get(user_id)

async def require_user(user: User | None = Depends(get_current_user)) -> User:
    if user is None:
        raise HTTPException(status_code=401, detail="You must be logged in")
    return user
