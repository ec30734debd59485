from typing import Any, Iterable


def normalize_text(s: Any) -> str:
    if s is None:
        return ""
    return " ".join(str(s).strip().lower().split())


def split_list(value: Any) -> frozenset:
    """
    Turn a comma-separated string or an iterable of strings into a set of
    normalized, non-empty entries.
    """
    if value is None:
        return frozenset()
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    else:
        items = value
    return frozenset(t for t in (normalize_text(i) for i in items) if t)


def same_text(a: str, b: str) -> bool:
    """Case-insensitive equality that never matches two empty values."""
    na = normalize_text(a)
    return bool(na) and na == normalize_text(b)
