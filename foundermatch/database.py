"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for profile storage and computed matches.
"""

import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict
from sqlalchemy import create_engine, Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .profile import Profile

Base = declarative_base()


class ProfileRecord(Base):
    """Founder profile row."""

    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True)
    email = Column(String, nullable=True, unique=True)
    name = Column(String, nullable=False, default="")
    skills = Column(Text, nullable=False, default="")  # comma-separated
    interests = Column(Text, nullable=False, default="")  # comma-separated
    availability = Column(String, nullable=False, default="")  # Full-time, Part-time, Flexible
    university = Column(String, nullable=False, default="")
    major = Column(String, nullable=False, default="")
    department = Column(String, nullable=False, default="")
    role = Column(String, nullable=False, default="")
    status = Column(String, nullable=False, default="")
    bio = Column(Text, nullable=False, default="")
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    def to_profile(self) -> Profile:
        return Profile.from_record(self.to_record())

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email or "",
            "name": self.name,
            "skills": self.skills,
            "interests": self.interests,
            "availability": self.availability,
            "university": self.university,
            "major": self.major,
            "department": self.department,
            "role": self.role,
            "status": self.status,
            "bio": self.bio,
            "is_admin": self.is_admin,
        }


class MatchRecord(Base):
    """
    A computed match, replaced each time the subject is re-ranked.

    Ids are stored as text so both integer and UUID profile ids fit.
    """

    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subject_id = Column(String, nullable=False, index=True)
    candidate_id = Column(String, nullable=False)
    score = Column(Integer, nullable=False)
    rank = Column(Integer, nullable=False)
    computed_at = Column(DateTime, nullable=False, default=datetime.now)


_engines: Dict[str, Engine] = {}
_engines_lock = threading.Lock()


def get_engine(db_path: Path) -> Engine:
    """Return the shared engine for `db_path`, creating it on first use."""
    key = str(Path(db_path).resolve())
    with _engines_lock:
        engine = _engines.get(key)
        if engine is None:
            engine = create_engine(f"sqlite:///{key}")
            _engines[key] = engine
        return engine


def dispose_engines() -> None:
    """Close every cached engine (used at shutdown and between tests)."""
    with _engines_lock:
        for engine in _engines.values():
            engine.dispose()
        _engines.clear()


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(get_engine(db_path))


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    Session = sessionmaker(bind=get_engine(db_path))
    return Session()
