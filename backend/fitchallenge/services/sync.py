"""
Pulls recent activity from the linked fitness providers and folds it into a
challenge's progress.

Each provider yields a SourceReading (measurement or error). Readings are
merged field by field, first usable value wins, so overlapping providers are
never added together.
"""
from __future__ import annotations
from typing import Awaitable, Callable
import httpx
import structlog
from fitchallenge.models.user import User
from fitchallenge.schemas.challenge import ChallengeResult, ProgressUpdate
from fitchallenge.schemas.integrations import Measurement, SourceReading
from fitchallenge.integrations.fitbit import FitbitClient
from fitchallenge.integrations.strava import StravaClient
from fitchallenge.integrations.tokens import TokenVault
from fitchallenge.services.catalog import ChallengeCatalog
from fitchallenge.services.membership import MembershipService, fail

log = structlog.get_logger()

MERGED_FIELDS = ("distance", "calories")
STRAVA_CATEGORIES = ("running", "cycling")
RECENT_ACTIVITY_COUNT = 10

MeasurementSource = Callable[[], Awaitable[Measurement]]


def merge_readings(readings: list[SourceReading]) -> ProgressUpdate | None:
    """First reading (in order) with a positive value wins each field; None when nothing survives."""
    merged: dict[str, float] = {}
    for field in MERGED_FIELDS:
        for reading in readings:
            if not reading.ok:
                continue
            value = getattr(reading.measurement, field)
            if value:
                merged[field] = value
                break
    if not merged:
        return None
    return ProgressUpdate(**merged)


async def collect_readings(sources: list[tuple[str, MeasurementSource]]) -> list[SourceReading]:
    readings = []
    for name, fetch in sources:
        try:
            readings.append(SourceReading(source=name, measurement=await fetch()))
        except Exception as e:
            # Unavailable provider: no data from it, keep going
            log.warning("sync_source_skipped", source=name, error=str(e))
            readings.append(SourceReading(source=name, error=str(e) or type(e).__name__))
    return readings


async def strava_measurement(client: StravaClient) -> Measurement:
    activities = await client.activities(per_page=RECENT_ACTIVITY_COUNT)
    return Measurement(
        distance=sum(float(a.get("distance") or 0) / 1000 for a in activities),  # m -> km
        calories=sum(float(a.get("calories") or 0) for a in activities),
        activities=len(activities),
    )


async def fitbit_measurement(client: FitbitClient) -> Measurement:
    summary = (await client.daily_activity()).get("summary") or {}
    distances = summary.get("distances") or []
    return Measurement(
        steps=int(summary.get("steps") or 0),
        calories=float(summary.get("caloriesOut") or 0),
        distance=float(distances[0].get("distance") or 0) if distances else 0.0,
    )


class SyncService:
    def __init__(self, membership: MembershipService, catalog: ChallengeCatalog, vault: TokenVault, http: httpx.AsyncClient):
        self.membership = membership
        self.catalog = catalog
        self.vault = vault
        self.http = http

    async def sources_for(self, user: User, category: str) -> list[tuple[str, MeasurementSource]]:
        sources: list[tuple[str, MeasurementSource]] = []
        if category in STRAVA_CATEGORIES:
            strava = StravaClient.from_settings(self.http, await self.vault.get(user.id, "strava"))
            sources.append(("strava", lambda: strava_measurement(strava)))
        fitbit = FitbitClient.from_settings(self.http, await self.vault.get(user.id, "fitbit"))
        sources.append(("fitbit", lambda: fitbit_measurement(fitbit)))
        return sources

    async def sync(self, user: User | None, challenge_id: str) -> ChallengeResult:
        if user is None:
            return fail("NotAuthenticated", "You must be logged in")
        challenge = await self.catalog.get(challenge_id)
        if challenge is None:
            return fail("ChallengeNotFound", "Challenge not found")
        if not await self.membership.has_joined(user.id, challenge_id):
            return fail("NotJoined", "You have not joined this challenge")

        readings = await collect_readings(await self.sources_for(user, challenge.category))
        synced = {r.source: r.measurement for r in readings if r.ok}
        update = merge_readings(readings)
        if update is None:
            log.info("sync_nothing_to_apply", user_id=user.id, challenge_id=challenge_id, sources=[r.source for r in readings])
            result = fail("NothingToSync", "No data available to sync. Please connect your fitness apps.")
            result.synced_data = synced
            return result

        result = await self.membership.update_progress(user, challenge_id, update)
        if not result.success:
            return result
        log.info("progress_synced", user_id=user.id, challenge_id=challenge_id, sources=list(synced))
        result.message = "Progress synced successfully"
        result.synced_data = synced
        return result
