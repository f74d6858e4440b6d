from __future__ import annotations


class HabitTrackerError(Exception):
    status_code = 500
    default_detail = "Internal error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFound(HabitTrackerError):
    status_code = 404
    default_detail = "Not found"


class Conflict(HabitTrackerError):
    status_code = 409
    default_detail = "Conflict"


class Forbidden(HabitTrackerError):
    status_code = 403
    default_detail = "Forbidden"


class TransportFailure(HabitTrackerError):
    """The push service could not be reached or rejected the message; worth retrying later."""

    status_code = 502
    default_detail = "Push delivery failed"


class EndpointGone(HabitTrackerError):
    """The push service reports the endpoint as permanently invalid."""

    status_code = 410
    default_detail = "Push endpoint is gone"
