from datetime import datetime
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StravaAthlete(BaseModel):
    id: int | str
    model_config = ConfigDict(extra="ignore")


class StravaTokenExchange(BaseModel):
    """Body of Strava's POST /oauth/token response (code exchange or refresh)."""
    access_token: str
    refresh_token: str | None = None
    expires_at: int
    expires_in: int | None = None
    token_type: str | None = None
    scope: str | None = None
    # Only present on the authorization-code exchange.
    athlete: StravaAthlete | None = None
    model_config = ConfigDict(extra="ignore")


class StravaActivitySummary(BaseModel):
    """One item of GET /athlete/activities, reduced to what the local store keeps."""
    id: int | str
    name: str
    type: str
    start_date: datetime
    distance: float | None = None
    moving_time: int | None = None
    description: str | None = None
    model_config = ConfigDict(extra="ignore")


class StravaStatus(BaseModel):
    connected: bool
    last_synced_at: datetime | None = None
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
