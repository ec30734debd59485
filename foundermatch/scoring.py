"""
Scoring Logic for co-founder matching.

Responsibilities:
- Compute a deterministic compatibility score (0-100) for an ordered
  (subject, candidate) pair.
- Emit a score breakdown and explanation.

Non-Responsibilities:
- No store access.
- No candidate selection or filtering.
- No sorting or truncation.

Invariant:
Given identical inputs, this module must always return
the same score and explanation.
"""

import math
from dataclasses import dataclass, field
from typing import List

from .normalize import normalize_text, same_text
from .profile import Profile

SKILL_COMPLEMENT_POINTS = 35
SKILL_ONE_SIDED_POINTS = 15
INTEREST_POINTS_EACH = 25
INTEREST_CAP = 25
AVAILABILITY_POINTS = 15
EDUCATION_POINTS = 10
COMPLETENESS_POINTS = 15

COMPLETENESS_FIELDS = ("name", "skills", "interests", "availability", "university")
MAX_SCORE = 100


@dataclass
class ScoreBreakdown:
    """Per-component points for one (subject, candidate) pair."""

    excluded: bool = False
    exclusion_reason: str = ""
    skills: float = 0
    interests: float = 0
    availability: float = 0
    education: float = 0
    completeness: float = 0
    shared_interests: List[str] = field(default_factory=list)

    @property
    def raw_total(self) -> float:
        return self.skills + self.interests + self.availability + self.education + self.completeness

    @property
    def score(self) -> int:
        if self.excluded:
            return 0
        # Round half up, not half to even.
        rounded = math.floor(self.raw_total + 0.5)
        return max(0, min(MAX_SCORE, int(rounded)))

    def explain(self) -> List[str]:
        if self.excluded:
            return [f"excluded: {self.exclusion_reason}"]
        reasons = []
        if self.skills == SKILL_COMPLEMENT_POINTS:
            reasons.append(f"complementary skills (+{SKILL_COMPLEMENT_POINTS})")
        elif self.skills:
            reasons.append(f"one-sided unique skills (+{SKILL_ONE_SIDED_POINTS})")
        if self.interests:
            shared = ", ".join(self.shared_interests)
            reasons.append(f"shared interests: {shared} (+{self.interests:g})")
        if self.availability:
            reasons.append(f"same availability (+{AVAILABILITY_POINTS})")
        if self.education:
            reasons.append(f"same university (+{EDUCATION_POINTS})")
        if self.completeness:
            reasons.append(f"profile completeness (+{self.completeness:g})")
        return reasons

    def to_dict(self) -> dict:
        return {
            "excluded": self.excluded,
            "exclusion_reason": self.exclusion_reason,
            "skills": self.skills,
            "interests": self.interests,
            "availability": self.availability,
            "education": self.education,
            "completeness": self.completeness,
            "raw_total": self.raw_total,
            "score": self.score,
            "reasons": self.explain(),
        }


def exclusion_reason(subject: Profile, candidate: Profile) -> str:
    """Return why a candidate can never match the subject, or "" if it can."""
    if subject.id == candidate.id:
        return "self (same id)"
    if same_text(subject.email, candidate.email):
        return "self (same email)"
    if candidate.is_admin:
        return "administrator account"
    return ""


def skill_points(subject: Profile, candidate: Profile) -> int:
    if not subject.skills or not candidate.skills:
        return 0
    subject_unique = subject.skills - candidate.skills
    candidate_unique = candidate.skills - subject.skills
    if subject_unique and candidate_unique:
        return SKILL_COMPLEMENT_POINTS
    if subject_unique or candidate_unique:
        return SKILL_ONE_SIDED_POINTS
    return 0


def filled_fields(profile: Profile) -> int:
    count = 0
    for name in COMPLETENESS_FIELDS:
        value = getattr(profile, name)
        if isinstance(value, str):
            value = normalize_text(value)
        if value:
            count += 1
    return count


def completeness_points(subject: Profile, candidate: Profile) -> float:
    filled = filled_fields(subject) + filled_fields(candidate)
    return filled * COMPLETENESS_POINTS / (2 * len(COMPLETENESS_FIELDS))


def score_breakdown(subject: Profile, candidate: Profile) -> ScoreBreakdown:
    reason = exclusion_reason(subject, candidate)
    if reason:
        return ScoreBreakdown(excluded=True, exclusion_reason=reason)

    shared = sorted(subject.interests & candidate.interests)
    return ScoreBreakdown(
        skills=skill_points(subject, candidate),
        interests=min(len(shared) * INTEREST_POINTS_EACH, INTEREST_CAP),
        availability=AVAILABILITY_POINTS if same_text(subject.availability, candidate.availability) else 0,
        education=EDUCATION_POINTS if same_text(subject.university, candidate.university) else 0,
        completeness=completeness_points(subject, candidate),
        shared_interests=shared,
    )


def score_match(subject: Profile, candidate: Profile) -> int:
    """Compatibility of `candidate` for `subject`, an integer in [0, 100]."""
    return score_breakdown(subject, candidate).score
