from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class UserLogin(BaseModel):
    firebase_uid: str = Field(min_length=1)
    email: str = Field(min_length=1)
    name: str = Field(min_length=1)
    profile_picture: str | None = None
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserRead(BaseModel):
    id: int
    firebase_uid: str
    email: str
    name: str
    profile_picture: str | None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class UserEnvelope(BaseModel):
    user: UserRead
