from __future__ import annotations
import uuid
from datetime import datetime, timezone as dt_tz
import structlog
from fitchallenge.models.user import User
from fitchallenge.schemas.auth import RegisterRequest, UserPublic
from fitchallenge.security import hash_password, verify_password
from fitchallenge.services.documents import DocumentStore, USERS_KEY

log = structlog.get_logger()

DEMO_USERS = [
    ("1", "Demo User", "demo@fitchallenge.com", "Demo1234"),
    ("2", "John Athlete", "john@example.com", "Athlete123"),
]


class EmailTaken(Exception):
    pass


def to_public(user: User) -> UserPublic:
    return UserPublic(id=user.id, name=user.name, email=user.email, profile_image=user.profile_image, created_at=user.created_at)


class UserDirectory:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def all(self) -> list[User]:
        return [User.model_validate(d) for d in await self.store.get(USERS_KEY) or []]

    async def _save(self, users: list[User]) -> None:
        await self.store.set(USERS_KEY, [u.model_dump(mode="json") for u in users])

    async def seed_demo_users(self) -> bool:
        async with self.store.lock(USERS_KEY):
            if await self.store.get(USERS_KEY):
                return False
            now = datetime.now(dt_tz.utc)
            await self._save([
                User(id=uid, name=name, email=email, password_hash=hash_password(pw), created_at=now)
                for uid, name, email, pw in DEMO_USERS
            ])
        log.info("demo_users_seeded", emails=[u[2] for u in DEMO_USERS])
        return True

    async def get(self, user_id: str) -> User | None:
        return next((u for u in await self.all() if u.id == user_id), None)

    async def find_by_email(self, email: str) -> User | None:
        email = email.lower().strip()
        return next((u for u in await self.all() if u.email.lower() == email), None)

    async def register(self, payload: RegisterRequest) -> User:
        async with self.store.lock(USERS_KEY):
            users = await self.all()
            email = str(payload.email).lower().strip()
            if any(u.email.lower() == email for u in users):
                raise EmailTaken(email)
            user = User(
                id=uuid.uuid4().hex,
                name=payload.name.strip(),
                email=email,
                password_hash=hash_password(payload.password),
                created_at=datetime.now(dt_tz.utc),
            )
            users.append(user)
            await self._save(users)
        log.info("user_registered", user_id=user.id)
        return user

    async def authenticate(self, email: str, password: str) -> User | None:
        user = await self.find_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            return None
        return user
