"""Python client for the gallery's upload form and listing page."""

from .errors import GalleryClientError, TransportError, UploadValidationError
from .gallery import GalleryView
from .transfer import MediaTransferClient, SelectedFile
