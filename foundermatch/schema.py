from typing import Any, Dict, List, Mapping, Optional

from .errors import InvalidInput
from .filters import FILTER_KEYS

REQUIRED_FIELDS = ["id"]
OPTIONAL_STR_FIELDS = [
    "email",
    "name",
    "availability",
    "university",
    "major",
    "department",
    "role",
    "status",
    "bio",
]
LIST_FIELDS = ["skills", "interests"]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _valid_id(v: Any) -> bool:
    if isinstance(v, bool):
        return False
    return isinstance(v, int) or _is_non_empty_str(v)


def validate_profile(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    errors: List[str] = []

    for f in REQUIRED_FIELDS:
        if f not in data or data[f] is None:
            errors.append(f"Missing required field: {f}")
    if "id" in data and data["id"] is not None and not _valid_id(data["id"]):
        errors.append("Field 'id' must be an integer or a non-empty string")

    # Optional strings: null is allowed and treated as empty
    for f in OPTIONAL_STR_FIELDS:
        if data.get(f) is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")

    # Skills/interests: comma-separated string or list of strings
    for f in LIST_FIELDS:
        v = data.get(f)
        if v is None or isinstance(v, str):
            continue
        if not isinstance(v, list) or not all(isinstance(i, str) for i in v):
            errors.append(f"Field '{f}' must be a string or a list of strings")

    if "is_admin" in data and not isinstance(data["is_admin"], (bool, type(None))):
        errors.append("Field 'is_admin' must be a boolean if provided")

    if isinstance(data.get("email"), str) and data["email"].strip() and "@" not in data["email"]:
        errors.append("Field 'email' must be a valid email address")

    return errors


def validate_k(k: Any, max_k: Optional[int] = None) -> int:
    """Return `k` if it is a usable top-K size, else raise InvalidInput."""
    if isinstance(k, bool) or not isinstance(k, int):
        raise InvalidInput(f"k must be a positive integer, got {k!r}")
    if k < 1:
        raise InvalidInput(f"k must be a positive integer, got {k}")
    if max_k is not None and k > max_k:
        raise InvalidInput(f"k must not exceed {max_k}, got {k}")
    return k


def validate_filters(filters: Optional[Mapping[str, Any]]) -> None:
    """Raise InvalidInput for unknown fields or non-string/blank values."""
    if filters is None:
        return
    if not isinstance(filters, Mapping):
        raise InvalidInput("filters must be a mapping of field name to value")
    for key, value in filters.items():
        if not isinstance(key, str) or key.strip().lower() not in FILTER_KEYS:
            allowed = ", ".join(sorted(FILTER_KEYS))
            raise InvalidInput(f"Unknown filter field: {key!r} (allowed: {allowed})")
        if not _is_non_empty_str(value):
            raise InvalidInput(f"Filter '{key}' must be a non-empty string")
