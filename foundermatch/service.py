"""
Match Orchestrator.

Responsibilities:
- Validate the request before touching the store.
- Fetch the subject and the full candidate pool.
- Invoke the ranker and hand results to the optional match sink.

Non-Responsibilities:
- No scoring logic.
- No retries (the REST store owns those).

Invariant:
A fetch failure fails the whole request; there are no partial rankings.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional

from .config import Settings
from .errors import CandidateNotFound, MatchError, SubjectNotFound
from .logger import StructuredLogger, get_logger
from .profile import ProfileId, ScoredCandidate
from .ranking import rank_candidates
from .schema import validate_filters, validate_k
from .scoring import ScoreBreakdown, score_breakdown
from .storage import ProfileStore, RestProfileStore, SQLMatchSink, SQLProfileStore


class MatchService:
    def __init__(
        self,
        store: ProfileStore,
        settings: Optional[Settings] = None,
        logger: Optional[StructuredLogger] = None,
        sink: Optional[SQLMatchSink] = None,
    ):
        self.store = store
        self.settings = settings or Settings()
        self.logger = logger or get_logger()
        self.sink = sink
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: List[Future] = []

    def rank(
        self,
        subject_id: ProfileId,
        k: Optional[int] = None,
        filters: Optional[Mapping[str, str]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Rank candidates for `subject_id` and return `{id, ...fields, score}` dicts.

        Raises:
            InvalidInput: bad `k` or filters, raised before any store access
            SubjectNotFound: the subject id does not resolve
            CandidateStoreUnavailable: the store could not be read
        """
        self.logger.record_rank_request()
        k = self.settings.default_k if k is None else k
        try:
            validate_k(k, max_k=self.settings.max_k)
            validate_filters(filters)

            subject = self.store.get_profile(subject_id)
            candidates = self.store.list_candidates(subject)
        except MatchError as e:
            self.logger.record_rank_failure(type(e).__name__)
            self.logger.warning("Ranking request rejected", subject_id=subject_id, k=k, error=str(e))
            raise

        ranked = rank_candidates(subject, candidates, k=k, filters=filters)
        self.logger.record_rank_result(candidates_scored=len(candidates), returned=len(ranked))
        self.logger.info(
            "Ranked candidates",
            subject_id=subject_id,
            k=k,
            filters=dict(filters or {}),
            pool_size=len(candidates),
            returned=len(ranked),
        )

        if self.sink is not None:
            self._persist_later(subject_id, ranked)
        return [candidate.to_dict() for candidate in ranked]

    def explain(self, subject_id: ProfileId, candidate_id: ProfileId) -> ScoreBreakdown:
        """
        Score breakdown for one pair, for auditing a ranking.

        Raises:
            SubjectNotFound: the subject id does not resolve
            CandidateNotFound: the candidate id does not resolve
            CandidateStoreUnavailable: the store could not be read
        """
        try:
            subject = self.store.get_profile(subject_id)
            try:
                candidate = self.store.get_profile(candidate_id)
            except SubjectNotFound:
                raise CandidateNotFound(candidate_id) from None
        except MatchError as e:
            self.logger.record_rank_failure(type(e).__name__)
            self.logger.warning(
                "Explain request rejected",
                subject_id=subject_id,
                candidate_id=candidate_id,
                error=str(e),
            )
            raise
        return score_breakdown(subject, candidate)

    def _persist_later(self, subject_id: ProfileId, ranked: List[ScoredCandidate]) -> None:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="match-sink")
        self._pending = [f for f in self._pending if not f.done()]
        self._pending.append(self._executor.submit(self._persist, subject_id, ranked))

    def _persist(self, subject_id: ProfileId, ranked: List[ScoredCandidate]) -> None:
        try:
            written = self.sink.save_matches(subject_id, ranked)
            self.logger.debug("Persisted matches", subject_id=subject_id, count=written)
        except Exception as e:
            # Persistence is best effort; the ranking was already returned.
            self.logger.error("Failed to persist matches", subject_id=subject_id, error=str(e))

    def flush(self) -> None:
        """Block until queued match writes have finished."""
        pending, self._pending = self._pending, []
        for future in pending:
            future.result()

    def close(self) -> None:
        self.flush()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None


def build_store(settings: Settings, logger: Optional[StructuredLogger] = None) -> ProfileStore:
    if settings.store == "rest":
        return RestProfileStore(
            base_url=settings.supabase_url,
            api_key=settings.supabase_key,
            table=settings.profiles_table,
            timeout=settings.http_timeout,
            max_retries=settings.max_retries,
            logger=logger,
        )
    if settings.store == "sql":
        return SQLProfileStore(settings.db_path, logger=logger)
    raise ValueError(f"Unsupported store backend: {settings.store}")


def build_service(settings: Settings, logger: Optional[StructuredLogger] = None, persist: Optional[bool] = None) -> MatchService:
    persist = settings.persist_matches if persist is None else persist
    sink = SQLMatchSink(settings.db_path, logger=logger) if persist else None
    return MatchService(build_store(settings, logger=logger), settings=settings, logger=logger, sink=sink)
