"""
Tests for the pairwise match scorer.
"""

import pytest

from foundermatch.profile import Profile
from foundermatch.scoring import (
    ScoreBreakdown,
    completeness_points,
    score_breakdown,
    score_match,
    skill_points,
)


class TestExclusion:
    """Self and administrator candidates always score zero."""

    def test_self_scores_zero(self, subject):
        assert score_match(subject, subject) == 0

    def test_same_email_different_id_scores_zero(self, subject_record):
        subject = Profile.from_record(subject_record)
        twin = Profile.from_record({**subject_record, "id": 99, "email": "ADA@example.com"})
        assert score_match(subject, twin) == 0
        assert score_breakdown(subject, twin).exclusion_reason == "self (same email)"

    def test_blank_emails_do_not_count_as_self(self):
        a = Profile(id=1, skills=frozenset({"go"}))
        b = Profile(id=2, skills=frozenset({"rust"}))
        assert score_match(a, b) > 0

    def test_admin_candidate_scores_zero(self, subject, candidate_record):
        admin = Profile.from_record({**candidate_record, "is_admin": True})
        assert score_match(subject, admin) == 0
        assert score_breakdown(subject, admin).excluded

    def test_score_is_asymmetric_for_admin_pair(self, subject, candidate_record):
        """An admin may score others, but nobody scores the admin."""
        admin = Profile.from_record({**candidate_record, "is_admin": True})
        assert score_match(subject, admin) == 0
        assert score_match(admin, subject) > 0


class TestSkillComplementarity:

    def test_both_sides_unique(self):
        a = Profile(id=1, skills=frozenset({"javascript", "react"}))
        b = Profile(id=2, skills=frozenset({"python", "ml"}))
        assert skill_points(a, b) == 35

    def test_only_one_side_unique(self):
        a = Profile(id=1, skills=frozenset({"python", "ml"}))
        b = Profile(id=2, skills=frozenset({"python"}))
        assert skill_points(a, b) == 15
        assert skill_points(b, a) == 15

    def test_identical_skills(self):
        a = Profile(id=1, skills=frozenset({"python"}))
        b = Profile(id=2, skills=frozenset({"python"}))
        assert skill_points(a, b) == 0

    def test_empty_skills_on_either_side(self):
        a = Profile(id=1, skills=frozenset({"python"}))
        b = Profile(id=2)
        assert skill_points(a, b) == 0
        assert skill_points(b, a) == 0

    def test_skills_compare_case_insensitively(self):
        a = Profile.from_record({"id": 1, "skills": "Python, SQL"})
        b = Profile.from_record({"id": 2, "skills": "python, sql"})
        assert skill_points(a, b) == 0


class TestInterestOverlap:

    def test_single_shared_interest_gets_full_weight(self):
        a = Profile.from_record({"id": 1, "interests": "ai, fintech"})
        b = Profile.from_record({"id": 2, "interests": "AI"})
        assert score_breakdown(a, b).interests == 25

    def test_more_shared_interests_saturate(self):
        subject = Profile.from_record({"id": 1, "interests": "ai, blockchain, climate"})
        one = Profile.from_record({"id": 2, "interests": "ai"})
        three = Profile.from_record({"id": 3, "interests": "ai, blockchain, climate"})

        assert score_breakdown(subject, one).interests == 25
        assert score_breakdown(subject, three).interests == 25
        assert score_match(subject, one) == score_match(subject, three)

    def test_no_shared_interest(self):
        a = Profile.from_record({"id": 1, "interests": "ai"})
        b = Profile.from_record({"id": 2, "interests": "health"})
        assert score_breakdown(a, b).interests == 0


class TestAttributeMatches:

    def test_availability_case_insensitive(self):
        a = Profile.from_record({"id": 1, "availability": "FULL-TIME"})
        b = Profile.from_record({"id": 2, "availability": "full-time"})
        assert score_breakdown(a, b).availability == 15

    def test_empty_availability_never_matches(self):
        a = Profile(id=1)
        b = Profile(id=2)
        assert score_breakdown(a, b).availability == 0

    def test_university_match(self):
        a = Profile.from_record({"id": 1, "university": "Stanford "})
        b = Profile.from_record({"id": 2, "university": "stanford"})
        assert score_breakdown(a, b).education == 10

    def test_different_university(self):
        a = Profile.from_record({"id": 1, "university": "MIT"})
        b = Profile.from_record({"id": 2, "university": "Stanford"})
        assert score_breakdown(a, b).education == 0


class TestCompleteness:

    def test_both_complete(self):
        full = {"name": "x", "skills": "a", "interests": "b", "availability": "Flexible", "university": "u"}
        a = Profile.from_record({"id": 1, **full})
        b = Profile.from_record({"id": 2, **full})
        assert completeness_points(a, b) == 15

    def test_both_empty(self):
        assert completeness_points(Profile(id=1), Profile(id=2)) == 0

    def test_whitespace_does_not_count(self):
        a = Profile(id=1, name="   ")
        assert completeness_points(a, Profile(id=2)) == 0

    def test_half_point_rounds_up(self):
        """One full profile against an empty one gives 7.5 -> 8."""
        full = Profile.from_record({
            "id": 1, "name": "x", "skills": "a", "interests": "b",
            "availability": "Flexible", "university": "u",
        })
        blank = Profile(id=2)
        breakdown = score_breakdown(full, blank)
        assert breakdown.completeness == 7.5
        assert breakdown.score == 8


class TestScoreMatch:

    def test_end_to_end_example(self, subject, candidate):
        """Skills 35 + interests 25 + availability 15 + university 10 + completeness 12."""
        breakdown = score_breakdown(subject, candidate)
        assert breakdown.skills == 35
        assert breakdown.interests == 25
        assert breakdown.availability == 15
        assert breakdown.education == 10
        assert breakdown.completeness == 12
        assert score_match(subject, candidate) == 97

    def test_perfect_match_is_capped_at_100(self, profiles):
        ada, grace = profiles[0], profiles[1]
        assert score_match(ada, grace) == 100

    def test_score_is_clamped(self):
        breakdown = ScoreBreakdown(skills=35, interests=25, availability=15, education=10, completeness=40)
        assert breakdown.score == 100
        assert ScoreBreakdown(skills=-5).score == 0

    def test_score_is_deterministic(self, subject, candidate):
        scores = {score_match(subject, candidate) for _ in range(20)}
        assert len(scores) == 1

    def test_missing_lists_are_empty_sets(self):
        a = Profile.from_record({"id": 1, "skills": None, "interests": None})
        b = Profile.from_record({"id": 2})
        assert score_match(a, b) == 0

    @pytest.mark.parametrize("other_id", [2, "2"])
    def test_result_is_int(self, subject, candidate_record, other_id):
        candidate = Profile.from_record({**candidate_record, "id": other_id})
        assert isinstance(score_match(subject, candidate), int)


class TestExplain:

    def test_reasons_list_components(self, subject, candidate):
        reasons = score_breakdown(subject, candidate).explain()
        assert any("complementary skills" in r for r in reasons)
        assert any("shared interests: ai" in r for r in reasons)
        assert any("same availability" in r for r in reasons)
        assert any("same university" in r for r in reasons)

    def test_excluded_reason(self, subject):
        assert score_breakdown(subject, subject).explain() == ["excluded: self (same id)"]

    def test_to_dict(self, subject, candidate):
        data = score_breakdown(subject, candidate).to_dict()
        assert data["score"] == 97
        assert data["raw_total"] == 97
        assert data["excluded"] is False
