from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Header
import structlog
from fitchallenge.auth_deps import require_user
from fitchallenge.deps import get_users
from fitchallenge.models.user import User
from fitchallenge.schemas.auth import RegisterRequest, LoginRequest, UserPublic, TokenPair, AuthSession
from fitchallenge.security import TokenError, issue_pair, token_subject
from fitchallenge.services.users import UserDirectory, EmailTaken, to_public

router = APIRouter(prefix="/auth", tags=["auth"])
log = structlog.get_logger()

def _session(user: User, message: str) -> AuthSession:
    return AuthSession(
        message=message,
        user=to_public(user),
        tokens=TokenPair(**issue_pair(user.id)),
    )

@router.post("/register", status_code=201, response_model=AuthSession)
async def register(payload: RegisterRequest, users: UserDirectory = Depends(get_users)):
    try:
        user = await users.register(payload)
    except EmailTaken:
        raise HTTPException(status_code=409, detail="An account with this email already exists")
    # Registration logs the user straight in
    return _session(user, "Account created successfully!")

@router.post("/login", response_model=AuthSession)
async def login(payload: LoginRequest, users: UserDirectory = Depends(get_users)):
    user = await users.authenticate(str(payload.email), payload.password)
    if not user:
        log.info("login_failed")
        raise HTTPException(status_code=401, detail="Invalid email or password. Please try again.")
    log.info("login_succeeded", user_id=user.id)
    return _session(user, "Login successful!")

@router.post("/refresh", response_model=TokenPair)
async def refresh(authorization: str | None = Header(None)):
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing refresh token")
    token = authorization.split(" ", 1)[1]
    try:
        sub = token_subject(token, "refresh")
    except TokenError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return TokenPair(**issue_pair(sub))

@router.get("/me", response_model=UserPublic)
async def me(user: User = Depends(require_user)):
    return to_public(user)
