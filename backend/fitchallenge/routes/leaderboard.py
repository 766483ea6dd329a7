from __future__ import annotations
from fastapi import APIRouter, Depends, Query
from fitchallenge.deps import get_catalog, get_membership, get_users
from fitchallenge.schemas.leaderboard import LeaderboardRow
from fitchallenge.services.catalog import ChallengeCatalog
from fitchallenge.services.leaderboard import build_leaderboard
from fitchallenge.services.membership import MembershipService
from fitchallenge.services.users import UserDirectory

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])

@router.get("", response_model=list[LeaderboardRow])
async def leaderboard(
    limit: int = Query(10, ge=1, le=100),
    membership: MembershipService = Depends(get_membership),
    catalog: ChallengeCatalog = Depends(get_catalog),
    users: UserDirectory = Depends(get_users),
):
    return await build_leaderboard(membership, catalog, users, limit)
