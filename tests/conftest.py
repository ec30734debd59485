"""
Pytest configuration and shared fixtures.
"""

import pytest
import json
from pathlib import Path
from typing import Dict, Any, List

from foundermatch.database import dispose_engines
from foundermatch.logger import StructuredLogger, reset_logger
from foundermatch.profile import Profile
from foundermatch.storage import SQLProfileStore


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path, monkeypatch):
    """Keep log files out of the working tree."""
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.chdir(tmp_path)
    reset_logger()
    yield
    reset_logger()
    dispose_engines()


@pytest.fixture
def quiet_logger(tmp_path) -> StructuredLogger:
    """Logger that writes only to a temp file."""
    return StructuredLogger(name="test", log_dir=tmp_path / "logs", enable_console=False)


@pytest.fixture
def subject_record() -> Dict[str, Any]:
    """Subject from the end-to-end example (no name)."""
    return {
        "id": 1,
        "email": "ada@example.com",
        "skills": "JavaScript, React",
        "interests": "AI, Blockchain",
        "availability": "Full-time",
        "university": "Stanford",
    }


@pytest.fixture
def candidate_record() -> Dict[str, Any]:
    return {
        "id": 2,
        "email": "grace@example.com",
        "skills": ["Python", "ML"],
        "interests": ["ai"],
        "availability": "full-time",
        "university": "stanford",
    }


@pytest.fixture
def subject(subject_record) -> Profile:
    return Profile.from_record(subject_record)


@pytest.fixture
def candidate(candidate_record) -> Profile:
    return Profile.from_record(candidate_record)


@pytest.fixture
def profile_records() -> List[Dict[str, Any]]:
    """A small community: subject 1, ranked candidates, an admin and a blank profile."""
    return [
        {
            "id": 1,
            "name": "Ada",
            "email": "ada@example.com",
            "skills": "javascript, react",
            "interests": "ai, blockchain",
            "availability": "Full-time",
            "university": "Stanford",
            "major": "Computer Science",
        },
        {
            "id": 2,
            "name": "Grace",
            "email": "grace@example.com",
            "skills": "python, ml",
            "interests": "ai",
            "availability": "Full-time",
            "university": "Stanford",
            "major": "Statistics",
        },
        {
            "id": 3,
            "name": "Linus",
            "email": "linus@example.com",
            "skills": "c, linux",
            "interests": "open source",
            "availability": "Part-time",
            "university": "Helsinki",
            "major": "Computer Science",
        },
        {
            "id": 4,
            "name": "Root",
            "email": "admin@example.com",
            "skills": "ops, sales",
            "interests": "ai, blockchain",
            "availability": "Full-time",
            "university": "Stanford",
            "is_admin": True,
        },
        {
            "id": 5,
            "name": "Hedy",
            "email": "hedy@example.com",
            "skills": "python, ml",
            "interests": "ai",
            "availability": "Full-time",
            "university": "Stanford",
            "major": "Physics",
        },
        {
            "id": 6,
            "email": "blank@example.com",
        },
    ]


@pytest.fixture
def profiles(profile_records) -> List[Profile]:
    return [Profile.from_record(r) for r in profile_records]


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "data" / "foundermatch.db"


@pytest.fixture
def populated_store(db_path, profile_records, quiet_logger) -> SQLProfileStore:
    """SQLite store loaded with `profile_records`."""
    store = SQLProfileStore(db_path, logger=quiet_logger)
    for record in profile_records:
        store.upsert_profile(record)
    return store


@pytest.fixture
def profiles_file(tmp_path, profile_records) -> Path:
    path = tmp_path / "profiles.json"
    path.write_text(json.dumps(profile_records, indent=2))
    return path
