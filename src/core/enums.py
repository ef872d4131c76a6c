from enum import Enum


class StorageLocation(str, Enum):
    """Where an object lives.

    Public objects are handed out by their direct store URL, private ones
    are only reachable through the service.
    """

    PUBLIC = "public"
    PRIVATE = "private"


class ResponseStatus(str, Enum):
    """Status field of JSON responses."""

    SUCCESS = "success"
    ERROR = "error"


# Order in which locations are checked when a key's location is unknown.
# The first location holding the key wins.
LOCATION_PROBE_ORDER: tuple[StorageLocation, ...] = (
    StorageLocation.PRIVATE,
    StorageLocation.PUBLIC,
)
