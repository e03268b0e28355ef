"""
Custom Exception Classes for the Entity Collection Taxonomy service

This module defines custom exceptions for better error handling and
consistent error responses across the application.
"""

from typing import Any

from fastapi import status


class TaxonomyException(Exception):
    """Base exception class for all taxonomy service exceptions"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# ============================================================================
# Authorization Exceptions
# ============================================================================


class AuthorizationError(TaxonomyException):
    """Raised when the caller lacks permission for an admin action"""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message=message, status_code=status.HTTP_403_FORBIDDEN)


# ============================================================================
# Resource Not Found Exceptions
# ============================================================================


class ResourceNotFoundError(TaxonomyException):
    """Base class for resource not found errors"""

    def __init__(self, resource_type: str, resource_id: Any | None = None):
        message = f"{resource_type} not found"
        if resource_id is not None:
            message = f"{resource_type} with id '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class TaxonomyNotFoundError(ResourceNotFoundError):
    """Raised when a taxonomy is not registered"""

    def __init__(self, taxonomy: Any | None = None):
        super().__init__(resource_type="Taxonomy", resource_id=taxonomy)


class TermNotFoundError(ResourceNotFoundError):
    """Raised when a term is not found"""

    def __init__(self, term_id: Any | None = None):
        super().__init__(resource_type="Term", resource_id=term_id)


class ContentNotFoundError(ResourceNotFoundError):
    """Raised when content is not found"""

    def __init__(self, content_id: Any | None = None):
        super().__init__(resource_type="Content", resource_id=content_id)


class PluginNotFoundError(ResourceNotFoundError):
    """Raised when a consumer plugin has no registered configuration"""

    def __init__(self, plugin_name: Any | None = None):
        super().__init__(resource_type="Plugin", resource_id=plugin_name)


# ============================================================================
# Validation & Business Logic Exceptions
# ============================================================================


class ValidationError(TaxonomyException):
    """Raised when input validation fails"""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST, details=error_details)


class DuplicateResourceError(TaxonomyException):
    """Raised when attempting to create a duplicate resource"""

    def __init__(self, resource_type: str, field: str, value: Any):
        super().__init__(
            message=f"{resource_type} with {field} '{value}' already exists",
            status_code=status.HTTP_409_CONFLICT,
            details={"resource_type": resource_type, "field": field, "value": value},
        )

