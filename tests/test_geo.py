import math

import pandas as pd
import pytest

from swipely.discovery.geo import calculate_distances, has_coordinates, haversine_distance, rounded_distance


def test_haversine_one_degree_of_latitude():
    assert haversine_distance(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.19, abs=0.01)


def test_haversine_same_point_is_zero():
    assert haversine_distance(30.2672, -97.7431, 30.2672, -97.7431) == 0.0


def test_rounded_distance_one_decimal():
    assert rounded_distance(0.0, 0.0, 1.0, 0.0) == 111.2


@pytest.mark.parametrize(
    "lat,lon,expected",
    [
        (30.2, -97.7, True),
        (None, -97.7, False),
        (30.2, None, False),
        (0, -97.7, False),
        (30.2, 0.0, False),
        (float("nan"), -97.7, False),
    ],
)
def test_has_coordinates(lat, lon, expected):
    assert has_coordinates(lat, lon) is expected


def test_calculate_distances_marks_unusable_positions():
    df = pd.DataFrame(
        {
            "latitude": [30.2672, None, 0.0, 30.3000],
            "longitude": [-97.7431, -97.7, -97.7, -97.7431],
        }
    )
    distances = calculate_distances(30.2672, -97.7431, df)

    assert distances.iloc[0] == pytest.approx(0.0)
    assert math.isnan(distances.iloc[1])
    assert math.isnan(distances.iloc[2])
    assert distances.iloc[3] == pytest.approx(3.65, abs=0.01)


def test_calculate_distances_empty_frame():
    df = pd.DataFrame(columns=["latitude", "longitude"])
    assert calculate_distances(30.0, -97.0, df).empty
