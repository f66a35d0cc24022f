import json
import secrets
from typing import Optional, Dict, Any
import redis

from app.config import REDIS_URL

# Connections are opened lazily on first command.
r = redis.Redis.from_url(REDIS_URL, decode_responses=True)

NAMESPACE = "oauth:strava:state:"
CONNECT_STATE_TTL_SECONDS = 15 * 60


def _key(state: str) -> str:
    return f"{NAMESPACE}{state}"


def put_oauth_state(state: str, payload: Dict[str, Any], ttl_seconds: int = CONNECT_STATE_TTL_SECONDS) -> None:
    r.set(_key(state), json.dumps(payload), ex=ttl_seconds, nx=True)


def pop_oauth_state(state: str) -> Optional[Dict[str, Any]]:
    """Read and delete in one step so a state value can be redeemed once."""
    raw = r.getdel(_key(state))
    return json.loads(raw) if raw else None


def begin_connect(user_id: int) -> str:
    """Bind a fresh OAuth `state` to the app user starting the Strava connect flow."""
    state = secrets.token_urlsafe(32)
    put_oauth_state(state, {"provider": "strava", "user_id": user_id})
    return state


def finish_connect(state: str | None) -> int | None:
    """Return the app user id bound to `state`, or None when unknown or expired."""
    if not state:
        return None
    blob = pop_oauth_state(state)
    if not blob or blob.get("provider") != "strava":
        return None
    user_id = blob.get("user_id")
    return int(user_id) if user_id is not None else None
