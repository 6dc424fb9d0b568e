"""
Standardized error response messages and builders.

This module provides consistent error messages and HTTPException builders
for the API. Messages are user-facing; technical details belong in logs.

Error Message Format Guidelines:
- Use sentence case (capitalize first letter only)
- End with a period for complete sentences

Usage:
    from fleetcheck.core.error_responses import ErrorMessages, raise_not_found

    if attempt is None:
        raise_not_found(ErrorMessages.attempt_not_found(attempt_id))

    raise_bad_request(ErrorMessages.attempt_already_finished("completed"))
"""

from typing import NoReturn

from fastapi import HTTPException, status


class ErrorMessages:
    """Centralized error message constants and templates.

    Naming Convention:
    - Constants: SCREAMING_SNAKE_CASE for static messages
    - Methods: snake_case for templates that accept parameters
    """

    # ==========================================================================
    # Bad Request Errors (400)
    # ==========================================================================
    EMPTY_TEST_TYPE = "Test type cannot be empty."
    EMPTY_PROFILE_UPDATE = "At least one profile field must be provided."

    # ==========================================================================
    # Template Methods for Dynamic Messages
    # ==========================================================================
    @staticmethod
    def attempt_already_finished(status: str) -> str:
        """Message for when trying to modify a finished test attempt."""
        return (
            f"Test attempt is already {status}. "
            "Only pending or in-progress attempts can be modified."
        )

    @staticmethod
    def attempt_not_found(attempt_id: str) -> str:
        """Message when a specific test attempt is not found."""
        return f"Test attempt {attempt_id} not found."

    @staticmethod
    def profile_not_found(driver_id: str) -> str:
        """Message when a driver has no profile."""
        return f"Profile for driver {driver_id} not found."

    @staticmethod
    def certification_owned_by_other_driver(certification_id: str) -> str:
        """Message when a certification id is already used by another driver."""
        return f"Certification {certification_id} belongs to another driver."


# ==============================================================================
# HTTPException Builder Functions
# ==============================================================================


def raise_bad_request(detail: str) -> NoReturn:
    """Raise a 400 Bad Request exception.

    Use for client errors where the request is malformed or invalid.

    Args:
        detail: User-facing error message

    Raises:
        HTTPException: 400 Bad Request
    """
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail,
    )


def raise_not_found(detail: str) -> NoReturn:
    """Raise a 404 Not Found exception.

    Args:
        detail: User-facing error message

    Raises:
        HTTPException: 404 Not Found
    """
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail,
    )
