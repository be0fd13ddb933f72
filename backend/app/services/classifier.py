"""
Session classification.

    significant | long enough | disposition
    ------------+-------------+---------------
    no          | no          | SKIP (nothing persisted)
    no          | yes         | DURATION_ONLY
    yes         | no          | CHANGES_ONLY
    yes         | yes         | FULL
"""
from backend.app.models.outcome import Disposition


def has_significant_change(
    char_delta: int,
    word_delta: int,
    has_builder_changes: bool,
    activity_count: int,
    min_char_threshold: int,
) -> bool:
    return (
        abs(char_delta) >= min_char_threshold
        or abs(word_delta) >= 1
        or has_builder_changes
        or activity_count > 0
    )


def classify(duration: int, significant: bool, duration_threshold: int) -> Disposition:
    long_enough = duration >= duration_threshold

    if not significant and not long_enough:
        return Disposition.SKIP
    if not significant:
        return Disposition.DURATION_ONLY
    if not long_enough:
        return Disposition.CHANGES_ONLY
    return Disposition.FULL
