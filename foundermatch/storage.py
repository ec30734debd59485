"""
Profile stores and match persistence.

Stores supply the ranker with the subject profile and a fully materialized
candidate pool. They never compute scores.
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import requests
from sqlalchemy.exc import SQLAlchemyError

from .database import MatchRecord, ProfileRecord, get_session, init_database
from .errors import CandidateStoreUnavailable, SubjectNotFound
from .logger import StructuredLogger, get_logger
from .profile import Profile, ProfileId, ScoredCandidate
from .retry import CircuitBreaker, CircuitOpenError, RetryError, exponential_backoff, is_transient_error
from .scoring import exclusion_reason


def load_profiles_file(path: Path) -> List[Dict[str, Any]]:
    """Read profile records from a JSON file holding a list or {"profiles": [...]}."""
    with path.open("r", encoding="utf-8") as f:
        content = f.read().strip()
    if not content:
        return []
    data = json.loads(content)
    if isinstance(data, dict):
        data = data.get("profiles", [data] if "id" in data else [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of profiles in {path}")
    return data


def diff_dict(old: Dict[str, Any], new: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    changed = {}
    keys = set(old.keys()) | set(new.keys())
    for k in keys:
        ov = old.get(k)
        nv = new.get(k)
        if ov != nv:
            changed[k] = {"old": ov, "new": nv}
    return changed


class ProfileStore(ABC):
    """
    Read interface the matching service needs from a profile store.

    Implementations raise SubjectNotFound for an unknown id and
    CandidateStoreUnavailable when the store cannot be read.
    """

    name = "store"

    @abstractmethod
    def get_profile(self, profile_id: ProfileId) -> Profile:
        ...

    @abstractmethod
    def list_candidates(self, subject: Profile) -> List[Profile]:
        ...


def _eligible(subject: Profile, profiles: Iterable[Profile]) -> List[Profile]:
    return [p for p in profiles if not exclusion_reason(subject, p)]


def _to_int_id(profile_id: ProfileId) -> Optional[int]:
    if isinstance(profile_id, bool):
        return None
    if isinstance(profile_id, int):
        return profile_id
    try:
        return int(str(profile_id).strip())
    except ValueError:
        return None


def match_key(profile_id: ProfileId) -> str:
    """Text form of a profile id as stored in the matches table."""
    return str(profile_id).strip()


def parse_match_key(value: str) -> ProfileId:
    """Read a stored id back; numeric keys come back as ints."""
    value = str(value)
    return int(value) if value.lstrip("-").isdigit() else value


class SQLProfileStore(ProfileStore):
    """Profile store backed by the local SQLite database."""

    name = "sql"

    def __init__(self, db_path: Path, logger: Optional[StructuredLogger] = None):
        self.db_path = db_path
        self.logger = logger or get_logger()
        init_database(db_path)

    def get_profile(self, profile_id: ProfileId) -> Profile:
        row_id = _to_int_id(profile_id)
        if row_id is None:
            raise SubjectNotFound(profile_id)

        self.logger.record_store_call(self.name)
        session = get_session(self.db_path)
        try:
            row = session.get(ProfileRecord, row_id)
            profile = row.to_profile() if row is not None else None
        except SQLAlchemyError as e:
            self.logger.error("Profile lookup failed", profile_id=profile_id, error=str(e))
            raise CandidateStoreUnavailable(f"Profile store read failed: {e}") from e
        finally:
            session.close()

        self.logger.record_store_success(self.name)
        if profile is None:
            raise SubjectNotFound(profile_id)
        return profile

    def list_candidates(self, subject: Profile) -> List[Profile]:
        self.logger.record_store_call(self.name)
        session = get_session(self.db_path)
        try:
            query = session.query(ProfileRecord).filter(ProfileRecord.is_admin.is_(False))
            subject_row_id = _to_int_id(subject.id)
            if subject_row_id is not None:
                query = query.filter(ProfileRecord.id != subject_row_id)
            profiles = [row.to_profile() for row in query.order_by(ProfileRecord.id).all()]
        except SQLAlchemyError as e:
            self.logger.error("Candidate pool read failed", subject_id=subject.id, error=str(e))
            raise CandidateStoreUnavailable(f"Profile store read failed: {e}") from e
        finally:
            session.close()

        self.logger.record_store_success(self.name)
        return _eligible(subject, profiles)

    def list_profiles(self) -> List[Profile]:
        session = get_session(self.db_path)
        try:
            return [row.to_profile() for row in session.query(ProfileRecord).order_by(ProfileRecord.id).all()]
        finally:
            session.close()

    def upsert_profile(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert or update one profile row.

        Returns {"status": "new" | "updated" | "no-change", "changes": {...}}.
        """
        profile = Profile.from_record(record)
        row_id = _to_int_id(profile.id)
        if row_id is None:
            raise ValueError(f"SQL store needs an integer profile id, got {profile.id!r}")

        values = {
            "email": profile.email or None,
            "name": profile.name,
            "skills": ", ".join(sorted(profile.skills)),
            "interests": ", ".join(sorted(profile.interests)),
            "availability": profile.availability,
            "university": profile.university,
            "major": profile.major,
            "department": profile.department,
            "role": profile.role,
            "status": profile.status,
            "bio": profile.bio,
            "is_admin": profile.is_admin,
        }

        session = get_session(self.db_path)
        try:
            row = session.get(ProfileRecord, row_id)
            if row is None:
                session.add(ProfileRecord(id=row_id, **values))
                session.commit()
                return {"status": "new", "changes": {}}

            current = {k: getattr(row, k) for k in values}
            changes = diff_dict(current, values)
            if not changes:
                return {"status": "no-change", "changes": {}}
            for k, v in values.items():
                setattr(row, k, v)
            session.commit()
            return {"status": "updated", "changes": changes}
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            session.close()


class RestProfileStore(ProfileStore):
    """
    Profile store read through a hosted PostgREST endpoint (Supabase REST API).

    Reads retry transient failures with exponential backoff and sit behind a
    circuit breaker.
    """

    name = "rest"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str = "profiles",
        timeout: int = 20,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        breaker: Optional[CircuitBreaker] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        if not base_url:
            raise ValueError("Missing SUPABASE_URL for the rest profile store")
        if not api_key:
            raise ValueError("Missing SUPABASE_KEY for the rest profile store")
        self.endpoint = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        }
        self.timeout = timeout
        self.breaker = breaker or CircuitBreaker(
            failure_threshold=5,
            recovery_timeout=60,
            expected_exception=(requests.exceptions.RequestException, RetryError),
        )
        self.logger = logger or get_logger()
        self._fetch = exponential_backoff(
            max_retries=max_retries,
            base_delay=retry_delay,
            exceptions=(requests.exceptions.RequestException,),
            should_retry=is_transient_error,
            on_retry=self._log_retry,
        )(self._fetch_once)

    def _log_retry(self, attempt: int, exception: Exception, delay: float):
        self.logger.warning("Profile store read failed, retrying", attempt=attempt, delay=delay, error=str(exception))

    def _fetch_once(self, params: Dict[str, str]) -> Any:
        resp = requests.get(self.endpoint, params=params, headers=self.headers, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def _read(self, params: Dict[str, str]) -> List[Dict[str, Any]]:
        """Fetch rows with standardized error handling and logging.

        Raises:
            CandidateStoreUnavailable: On HTTP errors, exhausted retries,
                an open circuit or a malformed response body
        """
        self.logger.record_store_call(self.name)
        try:
            rows = self.breaker.call(self._fetch, params)
        except CircuitOpenError as e:
            self.logger.warning("Profile store circuit open", endpoint=self.endpoint)
            raise CandidateStoreUnavailable(str(e)) from e
        except RetryError as e:
            self.logger.error("Profile store retries exhausted", endpoint=self.endpoint, error=str(e))
            raise CandidateStoreUnavailable(f"Profile store unavailable: {e}") from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "HTTPError"
            self.logger.error("Profile store request failed", endpoint=self.endpoint, status=status)
            raise CandidateStoreUnavailable(f"Profile store request failed ({status})") from e
        except requests.exceptions.RequestException as e:
            self.logger.error("Profile store request error", endpoint=self.endpoint, error=str(e))
            raise CandidateStoreUnavailable(f"Profile store request error: {e}") from e
        except ValueError as e:
            self.logger.error("Profile store returned invalid JSON", endpoint=self.endpoint)
            raise CandidateStoreUnavailable("Profile store returned invalid JSON") from e

        if not isinstance(rows, list):
            raise CandidateStoreUnavailable("Profile store returned an unexpected payload")
        self.logger.record_store_success(self.name)
        return rows

    def get_profile(self, profile_id: ProfileId) -> Profile:
        rows = self._read({"select": "*", "id": f"eq.{profile_id}", "limit": "1"})
        if not rows:
            raise SubjectNotFound(profile_id)
        return Profile.from_record(rows[0])

    def list_candidates(self, subject: Profile) -> List[Profile]:
        rows = self._read({
            "select": "*",
            "id": f"neq.{subject.id}",
            "is_admin": "not.is.true",
            "order": "id.asc",
        })
        profiles = []
        for row in rows:
            try:
                profiles.append(Profile.from_record(row))
            except ValueError as e:
                self.logger.warning("Skipping malformed profile row", error=str(e))
        return _eligible(subject, profiles)


class SQLMatchSink:
    """Persists ranked matches to the local database."""

    def __init__(self, db_path: Path, logger: Optional[StructuredLogger] = None):
        self.db_path = db_path
        self.logger = logger or get_logger()
        init_database(db_path)

    def save_matches(self, subject_id: ProfileId, ranked: List[ScoredCandidate]) -> int:
        """Replace the stored matches for `subject_id`; returns rows written."""
        subject_key = match_key(subject_id)
        now = datetime.now()
        session = get_session(self.db_path)
        try:
            session.query(MatchRecord).filter(MatchRecord.subject_id == subject_key).delete()
            for position, candidate in enumerate(ranked, start=1):
                session.add(MatchRecord(
                    subject_id=subject_key,
                    candidate_id=match_key(candidate.id),
                    score=candidate.score,
                    rank=position,
                    computed_at=now,
                ))
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            session.close()

        self.logger.record_matches_persisted(len(ranked))
        return len(ranked)

    def load_matches(self, subject_id: ProfileId) -> List[Dict[str, Any]]:
        session = get_session(self.db_path)
        try:
            rows = (
                session.query(MatchRecord)
                .filter(MatchRecord.subject_id == match_key(subject_id))
                .order_by(MatchRecord.rank)
                .all()
            )
            return [
                {"candidate_id": parse_match_key(r.candidate_id), "score": r.score, "rank": r.rank, "computed_at": r.computed_at}
                for r in rows
            ]
        finally:
            session.close()


def delete_stale_matches(days: int = 7, db_path: Path = Path("data/foundermatch.db")) -> Tuple[int, int]:
    """
    Delete persisted matches computed more than `days` days ago.

    Returns:
        Tuple of (rows_before, rows_after)
    """
    init_database(db_path)
    cutoff = datetime.now() - timedelta(days=days)
    session = get_session(db_path)
    try:
        before = session.query(MatchRecord).count()
        session.query(MatchRecord).filter(MatchRecord.computed_at < cutoff).delete()
        session.commit()
        after = session.query(MatchRecord).count()
    except SQLAlchemyError:
        session.rollback()
        raise
    finally:
        session.close()
    return (before, after)
