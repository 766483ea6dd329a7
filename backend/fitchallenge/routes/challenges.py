from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Query
from fitchallenge.auth_deps import get_current_user, require_user
from fitchallenge.deps import get_catalog, get_membership, get_sync
from fitchallenge.models.user import User
from fitchallenge.schemas.challenge import (
    Category, Challenge, ChallengeResult, Difficulty, ProgressUpdate, SortKey, UserChallengeView,
)
from fitchallenge.services.catalog import ChallengeCatalog
from fitchallenge.services.membership import MembershipService
from fitchallenge.services.sync import SyncService

router = APIRouter(prefix="/challenges", tags=["challenges"])

ERROR_STATUS = {
    "NotAuthenticated": 401,
    "ChallengeNotFound": 404,
    "AlreadyJoined": 409,
    "ActiveLimitExceeded": 400,
    "NotJoined": 403,
}

def ensure_ok(result: ChallengeResult) -> ChallengeResult:
    """Turn a failed domain result into the matching HTTP error; soft failures pass through."""
    if not result.success and result.error in ERROR_STATUS:
        raise HTTPException(status_code=ERROR_STATUS[result.error], detail=result.message)
    return result

@router.get("", response_model=list[Challenge])
async def list_challenges(
    category: Category | None = Query(None),
    difficulty: Difficulty | None = Query(None),
    min_duration: int | None = Query(None, ge=1, description="Minimum duration in days"),
    sort: SortKey = Query("popular"),
    q: str | None = Query(None, description="Search title, description and category"),
    catalog: ChallengeCatalog = Depends(get_catalog),
):
    filters = dict(category=category or "all", difficulty=difficulty or "all", min_duration=min_duration, sort=sort)
    if q and q.strip():
        return await catalog.search(q, **filters)
    return await catalog.browse(**filters)

@router.get("/featured", response_model=list[Challenge])
async def featured(limit: int = Query(3, ge=1, le=50), catalog: ChallengeCatalog = Depends(get_catalog)):
    return await catalog.featured(limit)

@router.get("/joined", response_model=list[UserChallengeView])
async def list_joined(user: User = Depends(require_user), membership: MembershipService = Depends(get_membership)):
    return await membership.views(await membership.list_for_user(user.id))

@router.get("/active", response_model=list[UserChallengeView])
async def list_active(user: User = Depends(require_user), membership: MembershipService = Depends(get_membership)):
    return await membership.views(await membership.list_active(user.id))

@router.get("/{challenge_id}", response_model=Challenge)
async def get_challenge(challenge_id: str, catalog: ChallengeCatalog = Depends(get_catalog)):
    ch = await catalog.get(challenge_id)
    if not ch:
        raise HTTPException(status_code=404, detail="Challenge not found")
    return ch

@router.get("/{challenge_id}/progress", response_model=UserChallengeView)
async def get_progress(challenge_id: str, user: User = Depends(require_user), membership: MembershipService = Depends(get_membership)):
    uc = await membership.get_open(user.id, challenge_id)
    if not uc:
        raise HTTPException(status_code=403, detail="You have not joined this challenge")
    return (await membership.views([uc]))[0]

@router.post("/{challenge_id}/join", response_model=ChallengeResult, status_code=201)
async def join_challenge(
    challenge_id: str,
    user: User | None = Depends(get_current_user),
    membership: MembershipService = Depends(get_membership),
):
    return ensure_ok(await membership.join(user, challenge_id))

@router.post("/{challenge_id}/leave", response_model=ChallengeResult)
async def leave_challenge(
    challenge_id: str,
    user: User | None = Depends(get_current_user),
    membership: MembershipService = Depends(get_membership),
):
    return ensure_ok(await membership.leave(user, challenge_id))

@router.post("/{challenge_id}/progress", response_model=ChallengeResult)
async def update_progress(
    challenge_id: str,
    payload: ProgressUpdate,
    user: User | None = Depends(get_current_user),
    membership: MembershipService = Depends(get_membership),
):
    return ensure_ok(await membership.update_progress(user, challenge_id, payload))

@router.post("/{challenge_id}/sync", response_model=ChallengeResult)
async def sync_progress(
    challenge_id: str,
    user: User | None = Depends(get_current_user),
    sync: SyncService = Depends(get_sync),
):
    # NothingToSync comes back as a 200 with success=false
    return ensure_ok(await sync.sync(user, challenge_id))
