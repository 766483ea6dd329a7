"""
Per-user challenge enrollments and the join/leave/progress state machine.

Records live in one document (USER_CHALLENGES_KEY) shaped as
``{userId: [UserChallenge, ...]}``. Every mutating call holds the document
lock for the whole read-modify-write; join and leave also hold the catalog
lock because they move the participant counter.
"""
from __future__ import annotations
from datetime import datetime, timedelta, timezone as dt_tz
import structlog
from fitchallenge.config import settings
from fitchallenge.models.user import User
from fitchallenge.schemas.challenge import (
    ChallengeResult, ErrorCode, ProgressUpdate, UserChallenge, UserChallengeView,
)
from fitchallenge.services.catalog import ChallengeCatalog
from fitchallenge.services.documents import DocumentStore, CHALLENGES_KEY, USER_CHALLENGES_KEY
from fitchallenge.services.progress import apply_update, calculate_progress, seed_progress, settle_completion

log = structlog.get_logger()

Memberships = dict[str, list[UserChallenge]]


def fail(error: ErrorCode, message: str) -> ChallengeResult:
    return ChallengeResult(success=False, error=error, message=message)


def _find_open(records: list[UserChallenge], challenge_id: str) -> UserChallenge | None:
    return next((uc for uc in records if uc.challenge_id == challenge_id and not uc.is_terminal), None)


class MembershipService:
    def __init__(self, store: DocumentStore, catalog: ChallengeCatalog, max_active: int | None = None):
        self.store = store
        self.catalog = catalog
        self.max_active = max_active if max_active is not None else settings.max_active_challenges

    async def _load(self) -> Memberships:
        raw = await self.store.get(USER_CHALLENGES_KEY) or {}
        return {uid: [UserChallenge.model_validate(d) for d in docs] for uid, docs in raw.items()}

    async def _save(self, memberships: Memberships) -> None:
        await self.store.set(
            USER_CHALLENGES_KEY,
            {uid: [uc.to_document() for uc in records] for uid, records in memberships.items()},
        )

    async def all_records(self) -> Memberships:
        return await self._load()

    async def list_for_user(self, user_id: str) -> list[UserChallenge]:
        return (await self._load()).get(user_id, [])

    async def list_active(self, user_id: str) -> list[UserChallenge]:
        return [uc for uc in await self.list_for_user(user_id) if uc.status == "active"]

    async def has_joined(self, user_id: str, challenge_id: str) -> bool:
        return _find_open(await self.list_for_user(user_id), challenge_id) is not None

    async def get_open(self, user_id: str, challenge_id: str) -> UserChallenge | None:
        return _find_open(await self.list_for_user(user_id), challenge_id)

    async def join(self, user: User | None, challenge_id: str, now: datetime | None = None) -> ChallengeResult:
        if user is None:
            return fail("NotAuthenticated", "You must be logged in to join challenges")
        now = now or datetime.now(dt_tz.utc)
        async with self.store.lock(CHALLENGES_KEY, USER_CHALLENGES_KEY):
            challenge = await self.catalog.get(challenge_id)
            if challenge is None:
                return fail("ChallengeNotFound", "Challenge not found")
            memberships = await self._load()
            records = memberships.setdefault(user.id, [])
            if _find_open(records, challenge_id):
                return fail("AlreadyJoined", "You have already joined this challenge")
            active = sum(1 for uc in records if uc.status == "active")
            if active >= self.max_active:
                return fail("ActiveLimitExceeded", f"You can only have {self.max_active} active challenges at a time")

            stamp = int(now.timestamp() * 1000)
            taken = {uc.id for uc in records}
            while f"{user.id}_{challenge_id}_{stamp}" in taken:
                stamp += 1
            uc = UserChallenge(
                id=f"{user.id}_{challenge_id}_{stamp}",
                user_id=user.id,
                challenge_id=challenge_id,
                status="active",
                progress=seed_progress(challenge),
                start_date=now,
                end_date=now + timedelta(days=challenge.duration),
                joined_at=now,
            )
            records.append(uc)
            await self._save(memberships)
            await self.catalog.adjust_participants_locked(challenge_id, 1)
        log.info("challenge_joined", user_id=user.id, challenge_id=challenge_id, user_challenge_id=uc.id)
        return ChallengeResult(
            success=True,
            message=f"Successfully joined {challenge.title}!",
            user_challenge=uc,
            progress=uc.progress,
            completion_percentage=0,
        )

    async def leave(self, user: User | None, challenge_id: str, now: datetime | None = None) -> ChallengeResult:
        if user is None:
            return fail("NotAuthenticated", "You must be logged in")
        now = now or datetime.now(dt_tz.utc)
        async with self.store.lock(CHALLENGES_KEY, USER_CHALLENGES_KEY):
            memberships = await self._load()
            uc = _find_open(memberships.get(user.id, []), challenge_id)
            if uc is None:
                return fail("NotJoined", "You have not joined this challenge")
            uc.status = "abandoned"
            uc.end_date = now
            await self._save(memberships)
            # Dangling challengeId: nothing to decrement
            await self.catalog.adjust_participants_locked(challenge_id, -1)
        log.info("challenge_left", user_id=user.id, challenge_id=challenge_id, user_challenge_id=uc.id)
        return ChallengeResult(success=True, message="Challenge abandoned", user_challenge=uc)

    async def update_progress(
        self,
        user: User | None,
        challenge_id: str,
        update: ProgressUpdate,
        now: datetime | None = None,
    ) -> ChallengeResult:
        if user is None:
            return fail("NotAuthenticated", "You must be logged in")
        async with self.store.lock(USER_CHALLENGES_KEY):
            memberships = await self._load()
            uc = _find_open(memberships.get(user.id, []), challenge_id)
            if uc is None:
                return fail("NotJoined", "You have not joined this challenge")
            uc.progress = apply_update(uc.progress, update)
            pct = settle_completion(uc, now)
            await self._save(memberships)
        log.info("progress_updated", user_id=user.id, challenge_id=challenge_id, completion=pct)
        if uc.status == "completed":
            log.info("challenge_completed", user_id=user.id, challenge_id=challenge_id, user_challenge_id=uc.id)
        return ChallengeResult(
            success=True,
            message="Progress updated",
            user_challenge=uc,
            progress=uc.progress,
            completion_percentage=pct,
        )

    async def views(self, records: list[UserChallenge]) -> list[UserChallengeView]:
        catalog = {c.id: c for c in await self.catalog.all()}
        return [
            UserChallengeView(
                user_challenge=uc,
                challenge=catalog.get(uc.challenge_id),
                completion_percentage=calculate_progress(uc.progress),
            )
            for uc in records
        ]
