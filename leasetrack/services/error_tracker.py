"""Classification of storage-layer write failures into user-facing messages."""
import logging

logger = logging.getLogger(__name__)

AUTHORIZATION_DENIED = "authorization_denied"
FOREIGN_KEY_VIOLATION = "foreign_key_violation"
CHECK_VIOLATION = "check_violation"
UNIQUE_VIOLATION = "unique_violation"
NOT_NULL_VIOLATION = "not_null_violation"
UNKNOWN = "unknown"

# PostgreSQL SQLSTATE codes
_SQLSTATE_MAP = {
    "42501": AUTHORIZATION_DENIED,
    "23503": FOREIGN_KEY_VIOLATION,
    "23514": CHECK_VIOLATION,
    "23505": UNIQUE_VIOLATION,
    "23502": NOT_NULL_VIOLATION,
}

# Fallback when the driver exposes no SQLSTATE
_MESSAGE_MAP = (
    ("violates row-level security policy", AUTHORIZATION_DENIED),
    ("permission denied", AUTHORIZATION_DENIED),
    ("violates foreign key constraint", FOREIGN_KEY_VIOLATION),
    ("violates check constraint", CHECK_VIOLATION),
    ("duplicate key value", UNIQUE_VIOLATION),
    ("violates not-null constraint", NOT_NULL_VIOLATION),
)


def _driver_error(error: Exception):
    """Unwrap SQLAlchemy DBAPIError -> driver exception (asyncpg keeps it on __cause__)."""
    orig = getattr(error, "orig", None)
    if orig is None:
        return error
    return getattr(orig, "__cause__", None) or orig


def _sqlstate(error: Exception) -> str | None:
    for candidate in (_driver_error(error), getattr(error, "orig", None), error):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if isinstance(code, str):
            return code
    return None


def error_text(error: Exception | str) -> str:
    """Primary message of a storage error without SQLAlchemy's statement dump."""
    if isinstance(error, str):
        return error
    driver = _driver_error(error)
    message = str(driver) if driver is not error else str(error)
    return message.split("\n[SQL:")[0].strip() or error.__class__.__name__


def _error_detail(error: Exception | str) -> str | None:
    if isinstance(error, str):
        return None
    detail = getattr(_driver_error(error), "detail", None)
    return detail if isinstance(detail, str) and detail else None


def classify_storage_error(error: Exception | str) -> str:
    """Category of a storage failure: SQLSTATE first, message text second."""
    if not isinstance(error, str):
        code = _sqlstate(error)
        if code in _SQLSTATE_MAP:
            return _SQLSTATE_MAP[code]
    message = error_text(error).lower()
    for needle, category in _MESSAGE_MAP:
        if needle in message:
            return category
    return UNKNOWN


def storage_error_message(error: Exception | str, entity_type: str, action: str = "insert") -> str:
    """User-facing message for a failed write of ``entity_type``."""
    category = classify_storage_error(error)
    message = error_text(error)
    detail = _error_detail(error)
    verb = "create" if action == "insert" else "modify"

    if category == AUTHORIZATION_DENIED:
        return f"Access denied: You don't have permission to {verb} {entity_type} records for this project"
    if category == FOREIGN_KEY_VIOLATION:
        return "Invalid reference: The specified project does not exist or is not accessible"
    if category == CHECK_VIOLATION:
        return f"Invalid data: {detail or message}"
    if category == UNIQUE_VIOLATION:
        return f"Duplicate entry: This {entity_type} already exists"
    if category == NOT_NULL_VIOLATION:
        return f"Missing required field: {detail or 'A required field is missing'}"
    return message
