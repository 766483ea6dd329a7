from __future__ import annotations
import httpx
from fitchallenge.config import settings
from fitchallenge.integrations.http import ApiNotConfigured, build_query, fetch_json

BASE_URL = "https://trackapi.nutritionix.com/v2"


class NutritionixClient:
    def __init__(self, http: httpx.AsyncClient, *, app_id: str, app_key: str):
        self.http = http
        self.app_id = app_id
        self.app_key = app_key

    @classmethod
    def from_settings(cls, http: httpx.AsyncClient) -> "NutritionixClient":
        return cls(http, app_id=settings.nutritionix_app_id, app_key=settings.nutritionix_app_key)

    @property
    def configured(self) -> bool:
        return bool(self.app_id and self.app_key)

    def _headers(self) -> dict[str, str]:
        if not self.configured:
            raise ApiNotConfigured("Nutritionix API credentials not configured")
        return {"x-app-id": self.app_id, "x-app-key": self.app_key}

    async def search_food(self, query: str) -> dict:
        return await fetch_json(self.http, "GET", f"{BASE_URL}/search/instant?{build_query({'query': query})}", headers=self._headers())

    async def food_details(self, text: str) -> dict:
        """Natural-language nutrients lookup, e.g. '1 cup of rice'."""
        return await fetch_json(self.http, "POST", f"{BASE_URL}/natural/nutrients", headers=self._headers(), json={"query": text})

    async def exercise(self, text: str) -> dict:
        """Calories for a described exercise, e.g. 'running for 30 minutes'."""
        return await fetch_json(self.http, "POST", f"{BASE_URL}/natural/exercise", headers=self._headers(), json={"query": text})
