class QuakeKmlError(Exception):
    """Base class for errors surfaced by a run."""


class FetchError(QuakeKmlError):
    """The event feed could not be fetched or returned an unusable payload."""


class MalformedRecordError(QuakeKmlError):
    """A single record failed normalization; the record is skipped."""

    def __init__(self, message: str, event_id: str = ""):
        super().__init__(message)
        self.event_id = event_id


class CorruptArchiveError(QuakeKmlError):
    """The persisted archive exists but cannot be parsed."""


class PersistError(QuakeKmlError):
    """The updated archive could not be written; the previous file is intact."""
