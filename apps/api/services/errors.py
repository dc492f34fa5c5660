"""Error taxonomy shared by routers and services.

Every error carries the HTTP status it maps to at the API boundary; the
message is the only detail returned to clients (``{"error": message}``).
"""


class MediaGalleryError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class Unauthorized(MediaGalleryError):
    status_code = 401


class ConfigurationError(MediaGalleryError):
    status_code = 500


class BadRequest(MediaGalleryError):
    status_code = 400


class UpstreamProcessingError(MediaGalleryError):
    """The remote media processor rejected or failed the request."""

    status_code = 500


class StoreError(MediaGalleryError):
    """A write to the metadata store failed."""

    status_code = 500


class QueryError(StoreError):
    """A read from the metadata store failed."""
