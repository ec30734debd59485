"""
Attribute filters applied to the candidate pool before scoring.

String attributes match on a case-insensitive substring; skill and interest
filters match one member of the set exactly (case-insensitive). Every
supplied filter must match.
"""

from typing import Dict, Iterable, List, Mapping, Optional

from .normalize import normalize_text
from .profile import Profile

SUBSTRING_FIELDS = {
    "name": "name",
    "email": "email",
    "university": "university",
    "availability": "availability",
    "major": "major",
    "department": "department",
    "role": "role",
    "status": "status",
}
MEMBER_FIELDS = {
    "skill": "skills",
    "skills": "skills",
    "interest": "interests",
    "interests": "interests",
}
FILTER_KEYS = frozenset(SUBSTRING_FIELDS) | frozenset(MEMBER_FIELDS)


def normalize_filters(filters: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Lower-case keys and values."""
    if not filters:
        return {}
    return {normalize_text(k): normalize_text(v) for k, v in filters.items()}


def matches_filters(profile: Profile, filters: Mapping[str, str]) -> bool:
    for key, wanted in filters.items():
        if key in MEMBER_FIELDS:
            if wanted not in getattr(profile, MEMBER_FIELDS[key]):
                return False
        elif key in SUBSTRING_FIELDS:
            if wanted not in normalize_text(getattr(profile, SUBSTRING_FIELDS[key])):
                return False
        else:
            raise KeyError(f"Unknown filter field: {key}")
    return True


def apply_filters(candidates: Iterable[Profile], filters: Optional[Mapping[str, str]]) -> List[Profile]:
    normalized = normalize_filters(filters)
    if not normalized:
        return list(candidates)
    return [c for c in candidates if matches_filters(c, normalized)]
