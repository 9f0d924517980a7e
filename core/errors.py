# core/errors.py

from fastapi import HTTPException


UNIQUE_VIOLATION_CODE = "23505"

_UNIQUE_MARKERS = (
    "duplicate",
    "unique",
    "already registered",
    "already been registered",
    "already exists",
)


def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors (APIError carries .message / .code)
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1: Supabase Auth / PostgREST errors
    message = getattr(error, "message", None)
    if message:
        return str(message)

    # Case 2: errors with args (common)
    if getattr(error, "args", None):
        return str(error.args[0])

    # Case 3: Plain string fallback
    return str(error) or "Unknown Supabase error"


def is_unique_violation(error: Exception) -> bool:
    """
    True when the store or GoTrue rejected a write because the row/email already exists.
    """
    if str(getattr(error, "code", "")) == UNIQUE_VIOLATION_CODE:
        return True

    detail = extract_supabase_error(error).lower()
    return any(marker in detail for marker in _UNIQUE_MARKERS)


def handle_supabase_error(error: Exception, operation: str = "Database operation", status_code: int = 500) -> HTTPException:
    """
    Handle Supabase errors with consistent formatting.
    Returns HTTPException (doesn't raise) so caller can customize or re-raise.
    """
    from core.logging_config import logger

    error_detail = extract_supabase_error(error)
    logger.error(f"{operation}: {error_detail}")

    # User-friendly messages for common errors
    error_lower = error_detail.lower()
    if is_unique_violation(error):
        return HTTPException(status_code=400, detail=f"{operation}: Record already exists")
    elif "foreign key" in error_lower:
        return HTTPException(status_code=400, detail=f"{operation}: Invalid reference")
    elif "not found" in error_lower or "does not exist" in error_lower:
        return HTTPException(status_code=404, detail=f"{operation}: Resource not found")
    else:
        return HTTPException(status_code=status_code, detail=f"{operation} failed")
