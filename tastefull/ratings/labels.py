from __future__ import annotations

from collections.abc import Iterable

RATING_LABELS: dict[int, str] = {
    1: "Avoid",
    2: "Poor",
    3: "Bad",
    4: "Meh",
    5: "Ok",
    6: "Decent",
    7: "Good",
    8: "Great",
    9: "Excellent",
    10: "Perfect",
}

TOP_RATED_THRESHOLD = 8


def rating_label(rating: float | None) -> str:
    if rating is None:
        return "Unknown"
    # round half up so 7.5 reads as "Great"
    return RATING_LABELS.get(int(rating + 0.5), "Unknown")


def rating_class(rating: float) -> str:
    if rating >= TOP_RATED_THRESHOLD:
        return "great"
    if rating >= 6:
        return "good"
    return "poor"


def average(values: Iterable[float | None]) -> float | None:
    """Mean of the non-null values, or ``None`` when there are none."""
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)
