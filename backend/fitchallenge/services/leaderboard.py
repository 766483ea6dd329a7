from __future__ import annotations
from fitchallenge.schemas.leaderboard import LeaderboardRow
from fitchallenge.services.catalog import ChallengeCatalog
from fitchallenge.services.membership import MembershipService
from fitchallenge.services.users import UserDirectory


async def build_leaderboard(
    membership: MembershipService,
    catalog: ChallengeCatalog,
    users: UserDirectory,
    limit: int = 10,
) -> list[LeaderboardRow]:
    points_by_challenge = {c.id: c.rewards.points for c in await catalog.all()}
    names = {u.id: u.name for u in await users.all()}

    rows = []
    for user_id, records in (await membership.all_records()).items():
        if not records:
            continue
        completed = [uc for uc in records if uc.status == "completed"]
        rows.append({
            "user_id": user_id,
            "name": names.get(user_id, user_id),
            "points": sum(points_by_challenge.get(uc.challenge_id, 0) for uc in completed),
            "workouts": sum(uc.progress.completed_workouts for uc in records),
            "completed": len(completed),
        })
    rows.sort(key=lambda r: (-r["points"], -r["workouts"], r["name"]))
    return [LeaderboardRow(rank=i, **r) for i, r in enumerate(rows[:limit], start=1)]
