# catalog_app/core/errors.py
from typing import Dict, Optional


class ValidationError(ValueError):
    """Local, pre-network failure. Never reaches the catalog service."""


class DraftValidationError(ValidationError):
    """
    A draft could not be turned into a submittable payload.
    `errors` maps field name -> human readable message.
    """

    def __init__(self, errors: Dict[str, str], message: str = "Please fill in all required fields"):
        super().__init__(message)
        self.errors = dict(errors)


class ImageValidationError(ValidationError):
    pass


class ImageTooLarge(ImageValidationError):
    pass


class ImageWrongType(ImageValidationError):
    pass


class CatalogError(Exception):
    """Base class for failures talking to the remote catalog service."""


class TransportError(CatalogError):
    """The request never reached the service or no response came back."""


class ServiceError(CatalogError):
    def __init__(self, status: int, message: Optional[str] = None):
        self.status = int(status)
        self.message = message or f"HTTP error! status: {self.status}"
        super().__init__(self.message)


class FormatError(CatalogError):
    """The service answered successfully but the body could not be interpreted."""
