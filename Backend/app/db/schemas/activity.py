from datetime import datetime
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.utils.clock import to_naive_utc


class ActivityUpsert(BaseModel):
    user_id: int
    strava_id: str
    name: str
    type: str
    start_date: datetime
    distance: float | None = None
    duration: int | None = None
    description: str | None = None


class ActivityUpdate(BaseModel):
    """
    Partial edit. Only fields present in the request body are applied;
    use model_dump(exclude_unset=True) to get them.
    """
    name: str | None = Field(default=None, min_length=1)
    type: str | None = Field(default=None, min_length=1)
    start_date: datetime | None = None
    distance: float | None = Field(default=None, ge=0)
    duration: int | None = Field(default=None, ge=0)
    description: str | None = None
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    @field_validator("name", "type", "start_date", mode="before")
    @classmethod
    def _not_null(cls, v: Any) -> Any:
        # These columns are NOT NULL; they may be omitted but not cleared.
        if v is None:
            raise ValueError("field cannot be null")
        return v

    @field_validator("start_date")
    @classmethod
    def _utc_start(cls, v: datetime | None) -> datetime | None:
        # Stored naive UTC, like synced rows.
        return to_naive_utc(v) if v is not None else v


class ActivityRead(BaseModel):
    id: int
    user_id: int
    strava_id: str
    name: str
    type: str
    start_date: datetime
    distance: float | None
    duration: int | None
    description: str | None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class ActivityEnvelope(BaseModel):
    activity: ActivityRead


class ActivityList(BaseModel):
    activities: list[ActivityRead]


class SyncResponse(BaseModel):
    message: str
    total_fetched: int
    saved: int
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
