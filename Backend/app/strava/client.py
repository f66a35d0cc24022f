import logging
import urllib.parse
from typing import Any, Dict, List

import requests

from app.config import STRAVA_CLIENT_ID, STRAVA_CLIENT_SECRET, STRAVA_HTTP_TIMEOUT
from app.core.errors import StravaAPIError

logger = logging.getLogger(__name__)

STRAVA_AUTHORIZE_URL = "https://www.strava.com/oauth/authorize"
STRAVA_TOKEN_URL = "https://www.strava.com/oauth/token"
STRAVA_API = "https://www.strava.com/api/v3"
STRAVA_SCOPES = "activity:read_all,activity:write"


def _auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _error_detail(response: requests.Response) -> Any:
    if response.headers.get("content-type", "").startswith("application/json"):
        try:
            return response.json()
        except ValueError:
            pass
    return response.text


def _check(response: requests.Response, what: str) -> requests.Response:
    if not response.ok:
        raise StravaAPIError(response.status_code, f"{what} failed: {_error_detail(response)}")
    return response


def _json(response: requests.Response, what: str) -> Any:
    try:
        return _check(response, what).json()
    except ValueError as e:
        # A 2xx with an HTML or empty body, e.g. a maintenance page.
        raise StravaAPIError(response.status_code, f"{what} returned a non-JSON body") from e


def build_authorize_url(state: str, redirect_uri: str) -> str:
    params = {
        "client_id": STRAVA_CLIENT_ID,
        "response_type": "code",
        "redirect_uri": redirect_uri,
        "approval_prompt": "force",
        "scope": STRAVA_SCOPES,
        "state": state,
    }
    return f"{STRAVA_AUTHORIZE_URL}?{urllib.parse.urlencode(params)}"


def _token_request(data: Dict[str, str], what: str) -> Dict[str, Any]:
    payload = {
        "client_id": STRAVA_CLIENT_ID,
        "client_secret": STRAVA_CLIENT_SECRET,
        **data,
    }
    try:
        response = requests.post(STRAVA_TOKEN_URL, data=payload, timeout=STRAVA_HTTP_TIMEOUT)
    except requests.exceptions.RequestException as e:
        raise StravaAPIError(None, f"Failed to connect to Strava API: {e}") from e
    return _json(response, what)


def exchange_code_for_tokens(auth_code: str) -> Dict[str, Any]:
    """
    Exchange an authorization code for tokens. The response carries
    access_token, refresh_token, expires_at (epoch seconds) and the athlete.
    """
    return _token_request({"code": auth_code, "grant_type": "authorization_code"}, "Token exchange")


def refresh_access_token(refresh_token: str) -> Dict[str, Any]:
    """Strava may rotate the refresh token; callers must persist the returned one."""
    return _token_request({"refresh_token": refresh_token, "grant_type": "refresh_token"}, "Token refresh")


def list_athlete_activities(access_token: str, *, page: int, per_page: int) -> List[Dict[str, Any]]:
    try:
        response = requests.get(
            f"{STRAVA_API}/athlete/activities",
            headers=_auth_headers(access_token),
            params={"page": page, "per_page": per_page},
            timeout=STRAVA_HTTP_TIMEOUT,
        )
    except requests.exceptions.RequestException as e:
        raise StravaAPIError(None, f"Failed to connect to Strava API: {e}") from e

    data = _json(response, "Activity list")
    if not isinstance(data, list):
        raise StravaAPIError(response.status_code, f"Unexpected activity list payload: {type(data).__name__}")
    return data


def update_activity(access_token: str, strava_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    """PUT /activities/{id} with Strava's UpdatableActivity fields (name, type, description)."""
    try:
        response = requests.put(
            f"{STRAVA_API}/activities/{strava_id}",
            headers=_auth_headers(access_token),
            json=fields,
            timeout=STRAVA_HTTP_TIMEOUT,
        )
    except requests.exceptions.RequestException as e:
        raise StravaAPIError(None, f"Failed to connect to Strava API: {e}") from e
    return _json(response, "Activity update")
