"""Custom exceptions for the photo cluster map application."""


class PhotoClusterMapError(Exception):
    """Base exception for photo cluster map operations."""
    pass


class ConfigurationError(PhotoClusterMapError):
    """Raised when there are configuration-related errors."""
    pass


class GeoTagError(PhotoClusterMapError):
    """Base class for per-file geotag failures. Never fatal to an ingestion."""

    def __init__(self, message: str, filename: str | None = None):
        super().__init__(f"{filename}: {message}" if filename else message)
        self.message = message
        self.filename = filename


class NoGeotagError(GeoTagError):
    """Raised when a readable image carries no usable GPS coordinates."""
    pass


class ExtractionError(GeoTagError):
    """Raised when an image cannot be read or parsed (corrupt or unsupported)."""
    pass


class ClusterNotFoundError(PhotoClusterMapError):
    """Raised when a cluster id is not present in the current spatial index."""
    pass


class EmptyClusterExpansionError(PhotoClusterMapError):
    """Raised when a cluster resolves to zero photos."""
    pass


class GalleryError(PhotoClusterMapError):
    """Raised on invalid gallery transitions."""
    pass


class FileOperationError(PhotoClusterMapError):
    """Raised when file operations fail."""
    pass
