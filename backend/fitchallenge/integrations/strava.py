from __future__ import annotations
from typing import Any
import httpx
from fitchallenge.config import settings
from fitchallenge.integrations.http import ApiError, ApiNotConfigured, build_query, fetch_json

BASE_URL = "https://www.strava.com/api/v3"
AUTH_URL = "https://www.strava.com/oauth/authorize"
TOKEN_URL = "https://www.strava.com/oauth/token"


class StravaClient:
    def __init__(self, http: httpx.AsyncClient, *, client_id: str, client_secret: str, redirect_uri: str, access_token: str | None = None):
        self.http = http
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.access_token = access_token

    @classmethod
    def from_settings(cls, http: httpx.AsyncClient, access_token: str | None = None) -> "StravaClient":
        return cls(
            http,
            client_id=settings.strava_client_id,
            client_secret=settings.strava_client_secret,
            redirect_uri=settings.strava_redirect_uri,
            access_token=access_token,
        )

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def auth_url(self, scope: str = "activity:read_all") -> str:
        if not self.client_id:
            raise ApiNotConfigured("Strava client not configured")
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": scope,
            "approval_prompt": "auto",
        }
        return f"{AUTH_URL}?{build_query(params)}"

    async def exchange_code(self, code: str) -> dict[str, Any]:
        if not self.configured:
            raise ApiNotConfigured("Strava client not configured")
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "grant_type": "authorization_code",
        }
        tok = await fetch_json(self.http, "POST", TOKEN_URL, data=data)
        if not tok.get("access_token"):
            raise ApiError("Token response did not include an access token")
        self.access_token = tok["access_token"]
        return tok

    def _headers(self) -> dict[str, str]:
        if not self.access_token:
            raise ApiNotConfigured("Strava access token not found. Please authenticate first.")
        return {"Authorization": f"Bearer {self.access_token}"}

    async def activities(self, page: int = 1, per_page: int = 30, after: int | None = None, before: int | None = None) -> list[dict]:
        params = {"page": page, "per_page": per_page, "after": after, "before": before}
        return await fetch_json(self.http, "GET", f"{BASE_URL}/athlete/activities?{build_query(params)}", headers=self._headers())

    async def activity(self, activity_id: int) -> dict:
        return await fetch_json(self.http, "GET", f"{BASE_URL}/activities/{activity_id}", headers=self._headers())

    async def athlete(self) -> dict:
        return await fetch_json(self.http, "GET", f"{BASE_URL}/athlete", headers=self._headers())
