from .user import User
from .strava_token import StravaToken
from .activity import Activity
from .sync_state import SyncState


__all__ = [
    "User",
    "StravaToken",
    "Activity",
    "SyncState",
]
