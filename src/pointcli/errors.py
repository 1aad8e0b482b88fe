from __future__ import annotations

from typing import Any, Optional


class PointError(Exception):
    """Base class for errors reported to the user."""


class NotAuthenticatedError(PointError):
    def __init__(self) -> None:
        super().__init__("You don't have an access token yet! Run 'point auth' to get started.")


class RemoteError(PointError):
    """The API rejected a request or could not be reached."""

    def __init__(self, message: str, response: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.response = response


class NoDevicesError(PointError):
    def __init__(self) -> None:
        super().__init__("No devices cached. Run 'point fetch' to load your Points.")


class NoDataError(PointError):
    def __init__(self, what: str = "sensor") -> None:
        super().__init__(f"No {what} data available.")
