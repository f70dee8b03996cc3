"""Exception hierarchy for the journey archive."""


class JourneyArchiveError(Exception):
    """Base class for all journey archive errors."""


class FormatError(JourneyArchiveError, ValueError):
    """An import document or backup file is malformed."""


class StorageError(JourneyArchiveError):
    """An underlying record store operation failed."""


class ParseError(JourneyArchiveError, ValueError):
    """A URL could not be parsed into a hostname."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Cannot parse hostname from {url!r}")


class JourneyNotFoundError(JourneyArchiveError, LookupError):
    """No journey exists with the requested id."""

    def __init__(self, journey_id: int) -> None:
        self.journey_id = journey_id
        super().__init__(f"Journey {journey_id!r} not found")
