from __future__ import annotations
import httpx
from fitchallenge.config import settings
from fitchallenge.integrations.http import ApiNotConfigured, build_query, fetch_json

BASE_URL = "https://www.googleapis.com/youtube/v3"

WORKOUT_QUERIES = {
    "yoga": "yoga workout for beginners",
    "hiit": "HIIT workout full body",
    "strength": "strength training workout",
    "cardio": "cardio workout at home",
    "pilates": "pilates full body workout",
    "stretching": "full body stretching routine",
    "abs": "abs workout 10 minutes",
    "legs": "leg workout at home",
}


class YouTubeClient:
    def __init__(self, http: httpx.AsyncClient, *, api_key: str):
        self.http = http
        self.api_key = api_key

    @classmethod
    def from_settings(cls, http: httpx.AsyncClient) -> "YouTubeClient":
        return cls(http, api_key=settings.youtube_api_key)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _key(self) -> str:
        if not self.api_key:
            raise ApiNotConfigured("YouTube API key not configured")
        return self.api_key

    async def search(self, query: str, max_results: int = 10, order: str = "relevance", video_duration: str = "any") -> dict:
        params = {
            "part": "snippet",
            "q": query,
            "maxResults": max_results,
            "order": order,
            "type": "video",
            "videoDuration": video_duration,  # any|short|medium|long
            "key": self._key(),
        }
        return await fetch_json(self.http, "GET", f"{BASE_URL}/search?{build_query(params)}")

    async def video_details(self, video_id: str) -> dict:
        params = {"part": "snippet,contentDetails,statistics", "id": video_id, "key": self._key()}
        return await fetch_json(self.http, "GET", f"{BASE_URL}/videos?{build_query(params)}")

    async def workout_recommendations(self, category: str, max_results: int = 12) -> dict:
        query = WORKOUT_QUERIES.get(category.lower(), f"{category} workout")
        # medium = 4-20 minutes
        return await self.search(query, max_results=max_results, order="relevance", video_duration="medium")
