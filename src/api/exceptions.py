"""Custom exceptions for the HavenRec API.

Defines specific exception types for better error handling and reporting.
"""

from typing import Any, Dict, Optional, Union


class HavenRecException(Exception):
    """Base exception for HavenRec errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code for API responses
            details: Additional error details for debugging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class CatalogNotFoundError(HavenRecException):
    """Raised when the catalog file cannot be found."""

    def __init__(self, data_dir: str, details: Optional[Dict[str, Any]] = None):
        message = f"Catalog not found in '{data_dir}'. Generate or provide product data first."
        super().__init__(
            message=message,
            status_code=503,
            details=details or {"data_dir": data_dir},
        )


class CatalogLoadError(HavenRecException):
    """Raised when catalog or order data fails to load."""

    def __init__(self, data_dir: str, error: Exception):
        message = f"Failed to load data from '{data_dir}': {str(error)}"
        super().__init__(
            message=message,
            status_code=500,
            details={
                "data_dir": data_dir,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )


class RecommendationError(HavenRecException):
    """Raised when recommendation generation fails unexpectedly."""

    def __init__(self, operation: str, error: Exception, subject: Optional[Union[int, str]] = None):
        target = f" for {subject}" if subject is not None else ""
        message = f"Failed to generate {operation} recommendations{target}: {str(error)}"
        super().__init__(
            message=message,
            status_code=500,
            details={
                "operation": operation,
                "subject": subject,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
