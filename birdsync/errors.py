class BirdsyncError(Exception):
    """Base class for errors raised by birdsync."""


class MetadataError(BirdsyncError):
    """
    The names spreadsheet is missing or malformed. Fatal for the whole run.
    """


class PhotoServiceError(BirdsyncError):
    """A call to the remote photo service failed."""
