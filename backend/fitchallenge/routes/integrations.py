from __future__ import annotations
from contextlib import contextmanager
import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Body
import structlog
from fitchallenge.auth_deps import require_user
from fitchallenge.deps import get_vault
from fitchallenge.integrations.fitbit import FitbitClient
from fitchallenge.integrations.http import ApiError, ApiNotConfigured, get_http_client
from fitchallenge.integrations.nutritionix import NutritionixClient
from fitchallenge.integrations.strava import StravaClient
from fitchallenge.integrations.tokens import TokenVault
from fitchallenge.integrations.youtube import YouTubeClient
from fitchallenge.models.user import User
from fitchallenge.schemas.integrations import AuthUrl, ConfigurationStatus, LinkResult

router = APIRouter(prefix="/integrations", tags=["integrations"])
log = structlog.get_logger()

@contextmanager
def provider_errors():
    try:
        yield
    except ApiNotConfigured as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ApiError as e:
        raise HTTPException(status_code=502, detail=str(e))

@router.get("/status", response_model=ConfigurationStatus)
async def status(http: httpx.AsyncClient = Depends(get_http_client)):
    return ConfigurationStatus(
        strava=StravaClient.from_settings(http).configured,
        nutritionix=NutritionixClient.from_settings(http).configured,
        fitbit=FitbitClient.from_settings(http).configured,
        youtube=YouTubeClient.from_settings(http).configured,
    )

@router.get("/strava/auth_url", response_model=AuthUrl)
async def strava_auth_url(scope: str = Query("activity:read_all"), http: httpx.AsyncClient = Depends(get_http_client)):
    with provider_errors():
        return AuthUrl(url=StravaClient.from_settings(http).auth_url(scope))

@router.get("/fitbit/auth_url", response_model=AuthUrl)
async def fitbit_auth_url(scope: str = Query("activity heartrate sleep"), http: httpx.AsyncClient = Depends(get_http_client)):
    with provider_errors():
        return AuthUrl(url=FitbitClient.from_settings(http).auth_url(scope))

@router.post("/strava/link", response_model=LinkResult)
async def strava_link(
    code: str = Body(..., embed=True),
    user: User = Depends(require_user),
    vault: TokenVault = Depends(get_vault),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    with provider_errors():
        tok = await StravaClient.from_settings(http).exchange_code(code)
    await vault.save(user.id, "strava", tok["access_token"])
    log.info("provider_linked", provider="strava", user_id=user.id)
    return LinkResult(provider="strava", linked=True, message="Strava linked.")

@router.post("/fitbit/link", response_model=LinkResult)
async def fitbit_link(
    code: str = Body(..., embed=True),
    user: User = Depends(require_user),
    vault: TokenVault = Depends(get_vault),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    with provider_errors():
        tok = await FitbitClient.from_settings(http).exchange_code(code)
    await vault.save(user.id, "fitbit", tok["access_token"])
    log.info("provider_linked", provider="fitbit", user_id=user.id)
    return LinkResult(provider="fitbit", linked=True, message="Fitbit linked.")

@router.get("/strava/activities")
async def strava_activities(
    per_page: int = Query(30, ge=1, le=200),
    page: int = Query(1, ge=1),
    user: User = Depends(require_user),
    vault: TokenVault = Depends(get_vault),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    client = StravaClient.from_settings(http, await vault.get(user.id, "strava"))
    with provider_errors():
        return await client.activities(page=page, per_page=per_page)

@router.get("/strava/activities/{activity_id}")
async def strava_activity(
    activity_id: int,
    user: User = Depends(require_user),
    vault: TokenVault = Depends(get_vault),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    client = StravaClient.from_settings(http, await vault.get(user.id, "strava"))
    with provider_errors():
        return await client.activity(activity_id)

@router.get("/strava/athlete")
async def strava_athlete(
    user: User = Depends(require_user),
    vault: TokenVault = Depends(get_vault),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    client = StravaClient.from_settings(http, await vault.get(user.id, "strava"))
    with provider_errors():
        return await client.athlete()

async def _fitbit(user: User = Depends(require_user), vault: TokenVault = Depends(get_vault), http: httpx.AsyncClient = Depends(get_http_client)) -> FitbitClient:
    return FitbitClient.from_settings(http, await vault.get(user.id, "fitbit"))

DATE_QUERY = Query("today", description="YYYY-MM-DD or 'today'")

@router.get("/fitbit/daily")
async def fitbit_daily(date: str = DATE_QUERY, client: FitbitClient = Depends(_fitbit)):
    with provider_errors():
        return await client.daily_activity(date)

@router.get("/fitbit/sleep")
async def fitbit_sleep(date: str = DATE_QUERY, client: FitbitClient = Depends(_fitbit)):
    with provider_errors():
        return await client.sleep(date)

@router.get("/fitbit/heart")
async def fitbit_heart(date: str = DATE_QUERY, client: FitbitClient = Depends(_fitbit)):
    with provider_errors():
        return await client.heart_rate(date)

@router.get("/fitbit/weekly_steps")
async def fitbit_weekly_steps(end_date: str = Query("today", description="Last day of the 7-day window"), client: FitbitClient = Depends(_fitbit)):
    with provider_errors():
        return await client.weekly_steps(end_date)

@router.get("/nutrition/search")
async def nutrition_search(query: str = Query(..., min_length=1), http: httpx.AsyncClient = Depends(get_http_client)):
    with provider_errors():
        return await NutritionixClient.from_settings(http).search_food(query)

@router.post("/nutrition/nutrients")
async def nutrition_nutrients(query: str = Body(..., embed=True), http: httpx.AsyncClient = Depends(get_http_client)):
    with provider_errors():
        return await NutritionixClient.from_settings(http).food_details(query)

@router.post("/nutrition/exercise")
async def nutrition_exercise(query: str = Body(..., embed=True), http: httpx.AsyncClient = Depends(get_http_client)):
    with provider_errors():
        return await NutritionixClient.from_settings(http).exercise(query)

@router.get("/videos")
async def workout_videos(
    category: str | None = Query(None, description="Workout category, e.g. yoga or hiit"),
    q: str | None = Query(None, description="Free-text search; ignored when category is set"),
    max_results: int = Query(12, ge=1, le=50),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    client = YouTubeClient.from_settings(http)
    with provider_errors():
        if category:
            return await client.workout_recommendations(category, max_results)
        if q:
            return await client.search(q, max_results=max_results)
    raise HTTPException(status_code=422, detail="Provide category or q")

@router.get("/videos/{video_id}")
async def workout_video(video_id: str, http: httpx.AsyncClient = Depends(get_http_client)):
    with provider_errors():
        return await YouTubeClient.from_settings(http).video_details(video_id)
