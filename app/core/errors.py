"""
Error taxonomy for the image pipeline.

Every error carries the HTTP status it maps to and a short human title;
the API renders them as ``{"error": title, "message": detail}``.
"""


class ImageProcessingError(Exception):
    """Base class for all pipeline failures."""

    status_code = 500
    error = "Failed to process image"


class NoFileProvided(ImageProcessingError):
    status_code = 400
    error = "No image file uploaded"


class UnsupportedFormat(ImageProcessingError):
    status_code = 400
    error = "Invalid file type. Only JPEG, PNG, and WebP are allowed."


class UploadTooLarge(ImageProcessingError):
    status_code = 400
    error = "File too large"


class ExtractionTimeout(ImageProcessingError):
    error = "Background removal timed out - please try again"


class ExtractionFailure(ImageProcessingError):
    error = "Failed to remove background"


class CompositeFailure(ImageProcessingError):
    error = "Failed to apply background color"


class ServiceUnavailable(ImageProcessingError):
    status_code = 503
    error = "Service not initialized"


class InvalidTransition(Exception):
    """Raised by the client session when an action is not allowed in its current state."""
