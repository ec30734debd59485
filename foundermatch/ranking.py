"""
Ranking of a candidate pool against one subject.

Responsibilities:
- Narrow the pool with attribute filters before scoring.
- Score each candidate, drop zero scores, sort and truncate to top-K.

Non-Responsibilities:
- No store access.
- No persistence of results.

Invariant:
Output is sorted by score descending; equal scores keep candidate input order.
"""

from typing import Iterable, List, Mapping, Optional

from .filters import apply_filters
from .profile import Profile, ScoredCandidate
from .schema import validate_filters, validate_k
from .scoring import exclusion_reason, score_match

DEFAULT_K = 6


def rank_candidates(
    subject: Profile,
    candidates: Iterable[Profile],
    k: int = DEFAULT_K,
    filters: Optional[Mapping[str, str]] = None,
) -> List[ScoredCandidate]:
    """
    Return at most `k` scored candidates, best first.

    Self matches, administrators and zero scores never appear. An empty pool
    is a valid outcome and yields [].
    """
    validate_k(k)
    validate_filters(filters)

    eligible = [c for c in candidates if not exclusion_reason(subject, c)]
    pool = apply_filters(eligible, filters)

    scored = []
    for candidate in pool:
        score = score_match(subject, candidate)
        if score > 0:
            scored.append(ScoredCandidate(profile=candidate, score=score))

    # sorted() is stable, so ties stay in input order
    scored = sorted(scored, key=lambda sc: sc.score, reverse=True)
    return scored[:k]
