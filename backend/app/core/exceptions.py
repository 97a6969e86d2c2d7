# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the scheduling platform.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.

Business-rule outcomes (past date, advance notice, booking window, ...)
are not exceptions: they are returned as ValidationResult values. Only
malformed input and infrastructure failures are raised.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Default conversion to HTTPException (override in subclasses)."""
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input fails format or range validation."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific scheduling exceptions


class DateDisplacementException(ValidationException):
    """
    Raised when normalizing a date would move it to a different calendar day.

    Displacements are never corrected: booking the wrong day is worse than
    rejecting the request.
    """

    def __init__(self, original_date: str, displaced_date: str, days_difference: int):
        super().__init__(
            message=(
                f"Date displacement detected: {original_date} normalizes to {displaced_date}"
            ),
            code="DATE_DISPLACEMENT",
            details={
                "original_date": original_date,
                "displaced_date": displaced_date,
                "days_difference": days_difference,
            },
        )


class AvailabilityCalculationException(ServiceException):
    """Raised when availability cannot be computed because data could not be read."""

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message or "Availability calculation failed",
            code="AVAILABILITY_CALCULATION_FAILED",
            details=details or {},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
