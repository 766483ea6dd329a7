from __future__ import annotations
from typing import Literal
from pydantic import BaseModel, Field

Provider = Literal["strava", "fitbit", "nutritionix", "youtube"]

class Measurement(BaseModel):
    distance: float | None = Field(default=None, description="km")
    calories: float | None = None
    activities: int | None = None
    steps: int | None = None

class SourceReading(BaseModel):
    """One source's outcome for a sync: a measurement or the error that replaced it."""
    source: str
    measurement: Measurement | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.measurement is not None

class ConfigurationStatus(BaseModel):
    strava: bool
    nutritionix: bool
    fitbit: bool
    youtube: bool

class AuthUrl(BaseModel):
    url: str

class LinkResult(BaseModel):
    provider: Provider
    linked: bool
    message: str
