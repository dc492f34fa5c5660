"""Errors raised by the gallery client before or after talking to the API."""


class GalleryClientError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UploadValidationError(GalleryClientError):
    """Submission rejected locally; no request was sent."""


class TransportError(GalleryClientError):
    """The request failed in transit or the server answered with an error."""
