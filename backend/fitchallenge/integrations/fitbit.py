from __future__ import annotations
from typing import Any
import httpx
from fitchallenge.config import settings
from fitchallenge.integrations.http import ApiError, ApiNotConfigured, build_query, fetch_json

BASE_URL = "https://api.fitbit.com/1"
AUTH_URL = "https://www.fitbit.com/oauth2/authorize"
TOKEN_URL = "https://api.fitbit.com/oauth2/token"


class FitbitClient:
    def __init__(self, http: httpx.AsyncClient, *, client_id: str, client_secret: str, redirect_uri: str, access_token: str | None = None):
        self.http = http
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.access_token = access_token

    @classmethod
    def from_settings(cls, http: httpx.AsyncClient, access_token: str | None = None) -> "FitbitClient":
        return cls(
            http,
            client_id=settings.fitbit_client_id,
            client_secret=settings.fitbit_client_secret,
            redirect_uri=settings.fitbit_redirect_uri,
            access_token=access_token,
        )

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def auth_url(self, scope: str = "activity heartrate sleep") -> str:
        if not self.client_id:
            raise ApiNotConfigured("Fitbit client not configured")
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": scope,
        }
        return f"{AUTH_URL}?{build_query(params)}"

    async def exchange_code(self, code: str) -> dict[str, Any]:
        if not self.configured:
            raise ApiNotConfigured("Fitbit client not configured")
        data = {
            "client_id": self.client_id,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": self.redirect_uri,
        }
        # Client credentials go in HTTP Basic auth, body is form-encoded
        tok = await fetch_json(self.http, "POST", TOKEN_URL, data=data, auth=(self.client_id, self.client_secret))
        if not tok.get("access_token"):
            raise ApiError("Token response did not include an access token")
        self.access_token = tok["access_token"]
        return tok

    async def _get(self, path: str) -> dict:
        if not self.access_token:
            raise ApiNotConfigured("Fitbit access token not found. Please authenticate first.")
        return await fetch_json(self.http, "GET", f"{BASE_URL}{path}", headers={"Authorization": f"Bearer {self.access_token}"})

    async def daily_activity(self, date: str = "today") -> dict:
        return await self._get(f"/user/-/activities/date/{date}.json")

    async def sleep(self, date: str = "today") -> dict:
        return await self._get(f"/user/-/sleep/date/{date}.json")

    async def heart_rate(self, date: str = "today") -> dict:
        return await self._get(f"/user/-/activities/heart/date/{date}/1d.json")

    async def weekly_steps(self, end_date: str = "today") -> dict:
        return await self._get(f"/user/-/activities/steps/date/{end_date}/7d.json")
