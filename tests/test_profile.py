"""
Tests for profile records and normalization.
"""

import pytest

from foundermatch.normalize import normalize_text, same_text, split_list
from foundermatch.profile import Profile, ScoredCandidate


class TestNormalize:

    def test_normalize_text(self):
        assert normalize_text("  Full   Time ") == "full time"
        assert normalize_text(None) == ""

    def test_split_list_from_string(self):
        assert split_list("Python, ML , ,python") == frozenset({"python", "ml"})

    def test_split_list_from_list(self):
        assert split_list(["React", " react ", ""]) == frozenset({"react"})

    def test_split_list_none(self):
        assert split_list(None) == frozenset()

    def test_same_text(self):
        assert same_text("Stanford", " stanford ")
        assert not same_text("", "")
        assert not same_text("MIT", "Stanford")


class TestProfileFromRecord:

    def test_defaults_for_missing_fields(self):
        p = Profile.from_record({"id": 7})
        assert p.skills == frozenset()
        assert p.interests == frozenset()
        assert p.availability == ""
        assert p.university == ""
        assert p.is_admin is False

    def test_null_fields_become_defaults(self):
        p = Profile.from_record({"id": 7, "name": None, "skills": None, "is_admin": None})
        assert p.name == ""
        assert p.skills == frozenset()
        assert p.is_admin is False

    def test_comma_separated_skills(self, subject):
        assert subject.skills == frozenset({"javascript", "react"})
        assert subject.interests == frozenset({"ai", "blockchain"})

    def test_string_admin_flag(self):
        assert Profile.from_record({"id": 1, "is_admin": "true"}).is_admin is True
        assert Profile.from_record({"id": 1, "is_admin": "false"}).is_admin is False

    def test_missing_id_raises(self):
        with pytest.raises(ValueError):
            Profile.from_record({"name": "nobody"})

    def test_profiles_are_immutable(self, subject):
        with pytest.raises(Exception):
            subject.name = "changed"


class TestSerialization:

    def test_to_dict_sorts_sets(self, subject):
        data = subject.to_dict()
        assert data["id"] == 1
        assert data["skills"] == ["javascript", "react"]
        assert data["interests"] == ["ai", "blockchain"]

    def test_scored_candidate_to_dict(self, candidate):
        data = ScoredCandidate(profile=candidate, score=97).to_dict()
        assert data["id"] == 2
        assert data["score"] == 97
        assert data["email"] == "grace@example.com"
