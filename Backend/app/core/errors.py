class NotConnected(Exception):
    """The user has no linked Strava credential."""


class ActivityNotFound(Exception):
    """Activity does not exist or belongs to another user."""


class ActivityOwnershipConflict(Exception):
    """A Strava id is already stored for a different user."""

    def __init__(self, strava_id: str):
        super().__init__(f"Strava activity {strava_id} belongs to another user")
        self.strava_id = strava_id


class StravaAPIError(Exception):
    """Strava returned a non-success status or could not be reached."""

    def __init__(self, status_code: int | None, detail: str):
        super().__init__(f"Strava API error ({status_code}): {detail}")
        self.status_code = status_code
        self.detail = detail


class RemoteFetchError(StravaAPIError):
    """Listing activities from Strava failed during a sync."""
