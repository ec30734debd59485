"""
Cleanup module for removing stale persisted matches.

Stale matches are those computed more than a given number of days ago
(default: 7). Rankings are recomputed on demand, so old rows only take space.
"""

from pathlib import Path
from typing import Tuple

from .storage import delete_stale_matches
from .logger import get_logger


def cleanup_stale_matches(db_path: Path, days: int = 7) -> Tuple[int, int]:
    """
    Remove persisted matches older than the specified number of days.

    Args:
        db_path: Path to the SQLite database
        days: Number of days to keep matches (default: 7)

    Returns:
        Tuple of (total_matches_before, total_matches_after)
        Difference = matches_removed
    """
    logger = get_logger()
    if days < 0:
        raise ValueError("days must not be negative")

    try:
        before, after = delete_stale_matches(days=days, db_path=db_path)
    except Exception as e:
        logger.error(f"Cleanup failed: {e}", error=str(e), days=days)
        return (0, 0)

    logger.info(
        f"Cleanup complete: {before - after} removed, {after} remaining",
        matches_before=before,
        matches_removed=before - after,
        matches_after=after,
        days_threshold=days,
    )
    return (before, after)
