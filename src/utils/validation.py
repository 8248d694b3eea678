"""
Input validation utilities.

Validates resolver arguments before any store request is built.
"""

from typing import Any, Dict, List, Optional

from .errors import AppError, ErrorCode

DEFAULT_LIMIT = 20
MAX_LIMIT = 100

MIN_RATING = 1
MAX_RATING = 5


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def require_input(arguments: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return the `input` object of a create/update mutation.

    Raises:
        AppError: If input is missing or not an object
    """
    input_data = arguments.get("input")
    if not isinstance(input_data, dict):
        raise AppError(ErrorCode.VALIDATION_ERROR, "Argument 'input' is required")
    return input_data


def require_string(data: Dict[str, Any], name: str) -> str:
    """
    Return a required, non-blank string argument (stripped).

    Raises:
        AppError: If the argument is missing, blank or not a string
    """
    value = data.get(name)
    if not isinstance(value, str) or not value.strip():
        raise AppError(
            ErrorCode.VALIDATION_ERROR,
            f"Argument '{name}' is required",
            {"field": name},
        )
    return value.strip()


def require_id(data: Dict[str, Any], name: str) -> str:
    """
    Return a required identifier argument exactly as supplied.

    Identifiers become key parts, so surrounding whitespace is rejected
    rather than stripped.

    Raises:
        AppError: If the argument is missing, blank, not a string or padded
    """
    value = require_string(data, name)
    if value != data[name]:
        raise AppError(
            ErrorCode.VALIDATION_ERROR,
            f"Argument '{name}' must not have surrounding whitespace",
            {"field": name},
        )
    return value


def optional_string(data: Dict[str, Any], name: str) -> Optional[str]:
    """Return an optional string argument, or None when not supplied."""
    value = data.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise AppError(
            ErrorCode.VALIDATION_ERROR,
            f"Argument '{name}' must be a string",
            {"field": name},
        )
    return value


def validate_rating(value: Any, required: bool = True) -> Optional[int]:
    """
    Validate a star rating.

    Args:
        value: Rating value from arguments
        required: Whether a missing value is an error

    Returns:
        The rating, or None if optional and not supplied

    Raises:
        AppError: If rating is missing (when required) or outside 1-5
    """
    if value is None:
        if required:
            raise AppError(ErrorCode.VALIDATION_ERROR, "Argument 'rating' is required", {"field": "rating"})
        return None

    if not _is_int(value) or not MIN_RATING <= value <= MAX_RATING:
        raise AppError(
            ErrorCode.VALIDATION_ERROR,
            f"Rating must be an integer from {MIN_RATING} to {MAX_RATING}",
            {"field": "rating", "rating": value},
        )
    return int(value)


def validate_limit(value: Any) -> int:
    """
    Validate a list query's result cap, defaulting to DEFAULT_LIMIT.

    Raises:
        AppError: If limit is not a positive integer up to MAX_LIMIT
    """
    if value is None:
        return DEFAULT_LIMIT
    if not _is_int(value) or not 0 < value <= MAX_LIMIT:
        raise AppError(
            ErrorCode.VALIDATION_ERROR,
            f"Limit must be an integer from 1 to {MAX_LIMIT}",
            {"field": "limit", "limit": value},
        )
    return int(value)


def validate_pages_read(value: Any) -> Optional[int]:
    """Validate an optional page count."""
    if value is None:
        return None
    if not _is_int(value) or value < 0:
        raise AppError(
            ErrorCode.VALIDATION_ERROR,
            "pagesRead must be a non-negative integer",
            {"field": "pagesRead", "pagesRead": value},
        )
    return int(value)


def validate_string_list(value: Any, name: str) -> Optional[List[str]]:
    """Validate an optional list of strings (e.g. customShelfIds)."""
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise AppError(
            ErrorCode.VALIDATION_ERROR,
            f"Argument '{name}' must be a list of strings",
            {"field": name},
        )
    return list(value)
