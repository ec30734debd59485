"""
Profile records used by the matcher.

Every optional attribute has a concrete default (empty string or empty set)
so scoring never has to deal with missing values.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping, Union

from .normalize import split_list

ProfileId = Union[int, str]

STRING_FIELDS = (
    "email",
    "name",
    "availability",
    "university",
    "major",
    "department",
    "role",
    "status",
    "bio",
)
SET_FIELDS = ("skills", "interests")


def _clean_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    return bool(value)


@dataclass(frozen=True)
class Profile:
    id: ProfileId
    email: str = ""
    name: str = ""
    skills: FrozenSet[str] = field(default_factory=frozenset)
    interests: FrozenSet[str] = field(default_factory=frozenset)
    availability: str = ""
    university: str = ""
    major: str = ""
    department: str = ""
    role: str = ""
    status: str = ""
    bio: str = ""
    is_admin: bool = False

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Profile":
        """
        Build a profile from a loose row (store row, JSON import, API payload).

        Skills and interests may be a comma-separated string or a list.
        Missing or null fields fall back to their defaults.
        """
        if record.get("id") is None:
            raise ValueError("Profile record is missing 'id'")

        values: Dict[str, Any] = {"id": record["id"]}
        for name in STRING_FIELDS:
            values[name] = _clean_str(record.get(name))
        for name in SET_FIELDS:
            values[name] = split_list(record.get(name))
        values["is_admin"] = _to_bool(record.get("is_admin", False))
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id}
        for name in STRING_FIELDS:
            data[name] = getattr(self, name)
        for name in SET_FIELDS:
            data[name] = sorted(getattr(self, name))
        data["is_admin"] = self.is_admin
        return data


@dataclass(frozen=True)
class ScoredCandidate:
    profile: Profile
    score: int

    @property
    def id(self) -> ProfileId:
        return self.profile.id

    def to_dict(self) -> Dict[str, Any]:
        data = self.profile.to_dict()
        data["score"] = self.score
        return data
