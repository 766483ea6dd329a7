from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel

class User(BaseModel):
    """Stored user record (lives in the fitchallenge_users document)."""
    id: str
    name: str
    email: str
    password_hash: str
    profile_image: str | None = None
    created_at: datetime
