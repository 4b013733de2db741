from __future__ import annotations

import pytest

from tastefull.geo.distance import (
    distance_from,
    distance_from_office,
    format_distance,
    km_to_walking_minutes,
)
from tastefull.ratings.labels import average, rating_class, rating_label


@pytest.mark.parametrize(
    "rating,label",
    [(1, "Avoid"), (2, "Poor"), (3, "Bad"), (4, "Meh"), (5, "Ok"),
     (6, "Decent"), (7, "Good"), (8, "Great"), (9, "Excellent"), (10, "Perfect")],
)
def test_rating_labels(rating, label):
    assert rating_label(rating) == label


def test_rating_label_rounds_averages_and_rejects_out_of_range():
    assert rating_label(7.5) == "Great"
    assert rating_label(7.4) == "Good"
    assert rating_label(0) == "Unknown"
    assert rating_label(11) == "Unknown"
    assert rating_label(None) == "Unknown"


def test_rating_class_bands():
    assert [rating_class(r) for r in (10, 8, 7, 6, 5, 1)] == [
        "great", "great", "good", "good", "poor", "poor",
    ]


def test_average():
    assert average([8, 6]) == 7
    assert average([9, None, 8]) == 8.5
    assert average([]) is None
    assert average([None]) is None


def test_distance_missing_coordinates():
    assert distance_from(51.5, -0.1, None, -0.1) is None
    assert format_distance(None) == "?"
    assert km_to_walking_minutes(None) is None


def test_distance_and_walking_time():
    # Borough Market from London Bridge office, a few hundred metres
    km = distance_from_office(51.5055, -0.0910)
    assert 0.0 < km < 1.0
    assert km_to_walking_minutes(5.0) == 60
    assert format_distance(1.0) == "12 min"
